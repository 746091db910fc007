import logging
from contextlib import contextmanager

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import db
from .auth import check_password, hash_password
from .errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .models import Athlete, CheckIn, Event, User
from .util import time_util
from .util.field_map import ATHLETE_FIELDS, EVENT_FIELDS, USER_FIELDS

logger = logging.getLogger(__name__)

ATHLETE_REQUIRED = (
    'firstName',
    'lastName',
    'phone',
    'dateOfBirth',
    'emergencyContact',
    'emergencyPhone',
)
EVENT_REQUIRED = ('name', 'date', 'startTime', 'endTime', 'maxCapacity', 'createdBy')
EVENT_UPDATE_REQUIRED = ('name', 'date', 'startTime', 'endTime', 'maxCapacity')
USER_REQUIRED = ('username', 'email', 'password', 'role', 'firstName', 'lastName')
USER_UPDATE_REQUIRED = ('username', 'email', 'firstName', 'lastName', 'role')


@contextmanager
def write_transaction(conflict_message=None):
    """Commit on success; roll back and translate storage errors on failure.

    An ``IntegrityError`` becomes a ``ConflictError`` when ``conflict_message``
    is given, any other database error becomes a ``StorageError``.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if conflict_message:
            raise ConflictError(conflict_message) from exc
        logger.exception("integrity error during write")
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("storage error during write")
        raise StorageError() from exc
    except Exception:
        db.session.rollback()
        raise


# --------------------------------------------------------------------------
# Athletes
# --------------------------------------------------------------------------

def get_athletes():
    return Athlete.query.order_by(Athlete.last_name, Athlete.first_name).all()


def get_athlete_by_id(aid):
    return db.session.get(Athlete, aid)


def require_athlete(aid):
    athlete = get_athlete_by_id(aid)
    if athlete is None:
        raise NotFoundError('Athlete not found')
    return athlete


def search_athletes(query_text, limit=20):
    """Case-insensitive substring match over first name, last name and email."""
    q = (query_text or '').strip()
    if not q:
        raise ValidationError('Search query is required')
    like_pattern = f"%{q}%"
    return (
        Athlete.query
        .filter(or_(
            Athlete.first_name.ilike(like_pattern),
            Athlete.last_name.ilike(like_pattern),
            Athlete.email.ilike(like_pattern),
        ))
        .order_by(Athlete.first_name, Athlete.last_name)
        .limit(limit)
        .all()
    )


def _ensure_unique_email(email, exclude_id=None):
    if not email:
        return
    query = Athlete.query.filter(Athlete.email == email)
    if exclude_id is not None:
        query = query.filter(Athlete.id != exclude_id)
    if query.first() is not None:
        if exclude_id is None:
            raise ConflictError('Athlete with this email already exists')
        raise ConflictError('Email is already used by another athlete')


def add_athlete(payload):
    values = ATHLETE_FIELDS.from_api(payload, required=ATHLETE_REQUIRED)
    _ensure_unique_email(values.get('email'))

    now = time_util.local_now()
    athlete = Athlete(created_at=now, updated_at=now, **values)
    with write_transaction('Athlete with this email already exists') as session:
        session.add(athlete)
    logger.info("created athlete %s", athlete.id)
    return athlete


def update_athlete(aid, payload):
    values = ATHLETE_FIELDS.from_api(payload, required=ATHLETE_REQUIRED)
    athlete = require_athlete(aid)
    _ensure_unique_email(values.get('email'), exclude_id=aid)

    with write_transaction('Email is already used by another athlete'):
        for attr, value in values.items():
            setattr(athlete, attr, value)
        athlete.updated_at = time_util.local_now()
    return athlete


def delete_athlete(aid):
    athlete = require_athlete(aid)
    if athlete.checkins.first() is not None:
        raise ConflictError('Cannot delete athlete with existing check-ins')
    with write_transaction('Cannot delete athlete with existing check-ins') as session:
        session.delete(athlete)
    logger.info("deleted athlete %s", aid)


def waiver_status(athlete, today=None):
    if not athlete.has_valid_waiver:
        return 'missing'
    today = today or time_util.local_today()
    expires = athlete.waiver_expiration_date
    if expires is not None and expires <= today:
        return 'expired'
    return 'valid'


def serialize_athlete(athlete):
    return ATHLETE_FIELDS.to_api(athlete, extra={'waiverStatus': waiver_status(athlete)})


# --------------------------------------------------------------------------
# Events
# --------------------------------------------------------------------------

def get_events():
    return Event.query.order_by(Event.date.desc(), Event.start_time.desc()).all()


def get_todays_events():
    today = time_util.local_today()
    return (
        Event.query
        .filter(Event.date == today, Event.is_active.is_(True))
        .order_by(Event.start_time.asc())
        .all()
    )


def get_past_events(limit=10):
    """Events that finished before now: earlier days, or today with an elapsed end time."""
    now = time_util.local_now()
    today = now.date()
    return (
        Event.query
        .filter(or_(
            Event.date < today,
            and_(Event.date == today, Event.end_time < now.time()),
        ))
        .order_by(Event.date.desc(), Event.start_time.desc())
        .limit(limit)
        .all()
    )


def get_disabled_events():
    return (
        Event.query
        .filter(Event.is_active.is_(False))
        .order_by(Event.date.desc(), Event.start_time.desc())
        .all()
    )


def get_event_by_id(eid):
    return db.session.get(Event, eid)


def require_event(eid):
    event = get_event_by_id(eid)
    if event is None:
        raise NotFoundError('Event not found')
    return event


def _validate_event_values(values):
    max_capacity = values.get('max_capacity')
    if max_capacity is not None and max_capacity <= 0:
        raise ValidationError('maxCapacity must be a positive integer')


def add_event(payload):
    values = EVENT_FIELDS.from_api(payload, required=EVENT_REQUIRED)
    _validate_event_values(values)
    values.setdefault('description', '')
    values.setdefault('is_active', True)

    now = time_util.local_now()
    event = Event(current_capacity=0, created_at=now, updated_at=now, **values)
    with write_transaction() as session:
        session.add(event)
    logger.info("created event %s (%s on %s)", event.id, event.name, event.date)
    return event


def update_event(eid, payload):
    values = EVENT_FIELDS.from_api(payload, required=EVENT_UPDATE_REQUIRED)
    values.pop('created_by', None)
    _validate_event_values(values)
    event = require_event(eid)
    if values['max_capacity'] < event.current_capacity:
        raise ConflictError(
            f"maxCapacity cannot be lower than the {event.current_capacity} athletes already checked in"
        )

    with write_transaction():
        for attr, value in values.items():
            setattr(event, attr, value)
        event.updated_at = time_util.local_now()
    return event


def toggle_event(eid):
    event = require_event(eid)
    with write_transaction():
        event.is_active = not event.is_active
        event.updated_at = time_util.local_now()
    logger.info("event %s %s", eid, 'activated' if event.is_active else 'deactivated')
    return event


def delete_event(eid):
    event = require_event(eid)
    if event.checkins.first() is not None:
        raise ConflictError('Cannot delete event with existing check-ins')
    with write_transaction('Cannot delete event with existing check-ins') as session:
        session.delete(event)
    logger.info("deleted event %s", eid)


def get_event_stats(eid):
    event = require_event(eid)
    flags = [validated for (validated,) in db.session.query(CheckIn.waiver_validated).filter(CheckIn.event_id == eid)]
    total = len(flags)
    validated = sum(1 for flag in flags if flag)
    return {
        'totalCheckins': total,
        'waiverValidated': validated,
        'waiverNotValidated': total - validated,
        'capacityUsed': f"{total / event.max_capacity * 100:.1f}",
    }


def serialize_event(event):
    return EVENT_FIELDS.to_api(event)


# --------------------------------------------------------------------------
# Users
# --------------------------------------------------------------------------

def get_users():
    return User.query.order_by(User.created_at.desc()).all()


def get_user_by_id(uid):
    return db.session.get(User, uid)


def require_user(uid):
    user = get_user_by_id(uid)
    if user is None:
        raise NotFoundError('User not found')
    return user


def get_user_by_login(login):
    return User.query.filter(or_(User.username == login, User.email == login)).first()


def _validate_role(role):
    if role not in User.ROLES:
        raise ValidationError('Invalid role')


def _ensure_unique_user(username, email, exclude_id=None):
    query = User.query.filter(or_(User.username == username, User.email == email))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise ConflictError('Username or email already exists')


def add_user(payload):
    values = USER_FIELDS.from_api(payload, required=USER_REQUIRED)
    _validate_role(values['role'])
    _ensure_unique_user(values['username'], values['email'])

    now = time_util.local_now()
    user = User(
        password_hash=hash_password(payload['password']),
        created_at=now,
        updated_at=now,
        **values,
    )
    with write_transaction('Username or email already exists') as session:
        session.add(user)
    logger.info("created %s account %s", user.role, user.username)
    return user


def update_user(uid, payload):
    values = USER_FIELDS.from_api(payload, required=USER_UPDATE_REQUIRED)
    _validate_role(values['role'])
    user = require_user(uid)
    _ensure_unique_user(values['username'], values['email'], exclude_id=uid)

    password = (payload or {}).get('password')
    with write_transaction('Username or email already exists'):
        for attr, value in values.items():
            setattr(user, attr, value)
        if password and password.strip():
            user.password_hash = hash_password(password)
        user.updated_at = time_util.local_now()
    return user


def delete_user(uid, acting_user_id):
    if uid == acting_user_id:
        raise ValidationError('Cannot delete your own account')
    user = require_user(uid)
    username = user.username
    with write_transaction() as session:
        session.delete(user)
    logger.info("deleted account %s", username)


def authenticate(login, password):
    if not login or not password:
        raise ValidationError('Username and password are required')
    if not isinstance(login, str) or not isinstance(password, str):
        raise ValidationError('Username and password must be strings')
    user = get_user_by_login(login)
    if user is None or not check_password(password, user.password_hash):
        logger.warning("failed login for %r", login)
        raise AuthenticationError('Invalid credentials')
    return user


def serialize_user(user):
    return USER_FIELDS.to_api(user)
