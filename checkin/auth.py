"""Password hashing, bearer tokens and the route decorators built on them."""
from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, request

from .errors import AuthenticationError, PermissionDenied


def hash_password(password: str) -> str:
    rounds = current_app.config.get('BCRYPT_ROUNDS', 12)
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


def check_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def issue_token(user) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'userId': user.id,
        'role': user.role,
        'iat': now,
        'exp': now + timedelta(hours=current_app.config.get('JWT_EXPIRES_HOURS', 8)),
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
    )


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
        )
    except jwt.PyJWTError:
        raise AuthenticationError('Invalid token') from None


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.lower().startswith('bearer '):
        return None
    return header.split(' ', 1)[1].strip() or None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError('No token provided')
        g.current_user = decode_token(token)
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @login_required
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.current_user.get('role') != 'admin':
            raise PermissionDenied()
        return view(*args, **kwargs)
    return wrapper
