from flask import g, jsonify

from . import api_bp, json_body
from ..auth import admin_required, issue_token, login_required
from ..queries import (
    authenticate,
    add_user,
    get_users,
    require_user,
    update_user,
    delete_user,
    serialize_user,
)


@api_bp.route('/auth/login', methods=['POST'])
def api_login():
    data = json_body()
    user = authenticate(data.get('username'), data.get('password'))
    return jsonify({
        'token': issue_token(user),
        'user': serialize_user(user),
        'message': 'Login successful',
    })


@api_bp.route('/auth/register', methods=['POST'])
@admin_required
def api_register():
    user = add_user(json_body())
    return jsonify({'message': 'User created successfully', 'userId': user.id}), 201


@api_bp.route('/auth/me')
@login_required
def api_me():
    return jsonify({'user': serialize_user(require_user(g.current_user.get('userId')))})


@api_bp.route('/auth/users')
@admin_required
def api_get_users():
    return jsonify({'users': [serialize_user(u) for u in get_users()]})


@api_bp.route('/auth/users/<uid>', methods=['PUT'])
@admin_required
def api_update_user(uid):
    update_user(uid, json_body())
    return jsonify({'message': 'User updated successfully'})


@api_bp.route('/auth/users/<uid>', methods=['DELETE'])
@admin_required
def api_delete_user(uid):
    delete_user(uid, g.current_user.get('userId'))
    return jsonify({'message': 'User deleted successfully'})
