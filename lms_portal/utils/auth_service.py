from flask import current_app, request
from flask_login import logout_user
from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
import logging

from .. import db
from ..errors import AuthError, ConflictError, ValidationError
from ..models.user import User, ROLES
from ..models.student import Student
from ..models.event import LoginEvent
from ..models.session import session_manager
from .validators import (
    check, require_fields, validate_username, validate_email,
    validate_password, validate_choice
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'


class AuthService:
    """Registration, login and logout against the user table and the session manager"""

    def __init__(self):
        self.sessions = session_manager

    def _password_min_length(self):
        return current_app.config['PASSWORD_MIN_LENGTH']

    def register(self, username, email, password, role, name=None, commit=True):
        """Create an account.

        With ``commit=False`` the rows are only flushed, leaving the caller to
        commit them together with its own writes.
        """
        require_fields(
            {'username': username, 'email': email, 'password': password, 'role': role},
            'username', 'email', 'password', 'role'
        )
        if not all(isinstance(value, str) for value in (username, email, password, role)):
            raise ValidationError("username, email, password and role must be strings")
        if name is not None and not isinstance(name, str):
            raise ValidationError('name must be a string')
        username = username.strip()
        email = email.strip().lower()
        check(
            validate_username(username),
            validate_email(email),
            validate_password(password, self._password_min_length()),
            validate_choice(role, ROLES, 'role'),
        )

        # Check if username or email already exists
        existing = User.query.filter(or_(User.username == username, User.email == email)).first()
        if existing:
            raise ConflictError('User already exists')

        user = User(username=username, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        if role == 'student':
            db.session.add(Student(user=user, name=name or username))
        try:
            if commit:
                db.session.commit()
            else:
                db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('User already exists')

        logger.info(f"Successfully created user: {username} ({role})")
        return user

    def login(self, email, password):
        """Open a session. Unknown email and wrong password fail the same way."""
        email = (email or '').strip().lower()
        user = User.query.filter_by(email=email).first() if email else None

        if user is None:
            # Spend the same hashing time as a real check
            check_password_hash(self._get_dummy_hash(), password or '')
            logger.info("Failed login attempt for unknown account")
            raise AuthError(INVALID_CREDENTIALS)

        if not password or not user.check_password(password):
            logger.info(f"Failed login attempt for user {user.id}")
            raise AuthError(INVALID_CREDENTIALS)

        auth_session = self.sessions.create(user)
        user.last_login_at = auth_session.created_at
        LoginEvent.record(
            user_id=user.id,
            ip_address=request.remote_addr,
            user_agent=(request.user_agent.string or '')[:255],
        )
        db.session.commit()

        logger.info(f"User {user.id} logged in as {user.role}")
        return auth_session

    def logout(self):
        auth_session = self.sessions.current()
        user_id = auth_session.user_id if auth_session is not None else None
        self.sessions.destroy()
        logout_user()
        if user_id is not None:
            logger.info(f"User {user_id} logged out")

    def me(self):
        auth_session = self.sessions.current()
        if auth_session is None:
            raise AuthError('Not authenticated')
        return auth_session.user

    def change_password(self, user, current_password, new_password):
        require_fields(
            {'currentPassword': current_password, 'newPassword': new_password},
            'currentPassword', 'newPassword'
        )
        if not user.check_password(current_password):
            raise AuthError('Current password is incorrect')
        check(validate_password(new_password, self._password_min_length()))

        user.set_password(new_password)
        db.session.commit()

        current = self.sessions.current()
        removed = self.sessions.destroy_all_for(user.id, keep=current.id if current else None)
        logger.info(f"User {user.id} changed password, {removed} other session(s) closed")

    def _get_dummy_hash(self):
        # Cached per app so it always uses that app's hashing method
        dummy_hash = current_app.extensions.get('auth_dummy_hash')
        if dummy_hash is None:
            dummy_hash = generate_password_hash(
                'not-a-real-password', method=current_app.config['PASSWORD_HASH_METHOD']
            )
            current_app.extensions['auth_dummy_hash'] = dummy_hash
        return dummy_hash


auth_service = AuthService()
