from flask import Blueprint, jsonify
from flask_login import current_user
from ..errors import ValidationError
from ..utils.auth_service import auth_service
from ..utils.decorators import login_required
from ..utils.validators import get_json_body

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/register', methods=['POST'])
def register():
    data = get_json_body()
    user = auth_service.register(
        username=data.get('username'),
        email=data.get('email'),
        password=data.get('password'),
        role=data.get('role'),
        name=data.get('name'),
    )
    return jsonify({
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'role': user.role,
    }), 201

@auth_bp.route('/login', methods=['POST'])
def login():
    data = get_json_body()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        raise ValidationError('Please provide email and password')
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError('Email and password must be strings')

    auth_session = auth_service.login(email, password)
    return jsonify({
        'success': True,
        'user': {'id': auth_session.user_id, 'role': auth_session.role},
    })

@auth_bp.route('/logout', methods=['POST'])
def logout():
    # Safe to call without a session
    auth_service.logout()
    return jsonify({'message': 'Logged out successfully'})

@auth_bp.route('/me')
def me():
    user = auth_service.me()
    return jsonify(user.to_dict())

@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    data = get_json_body()
    auth_service.change_password(
        current_user,
        data.get('currentPassword'),
        data.get('newPassword'),
    )
    return jsonify({'message': 'Password changed successfully'})
