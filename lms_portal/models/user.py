from flask import current_app
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from .. import db
from ..utils.dates import utcnow, isoformat

ROLES = ('admin', 'student', 'teacher')

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='student')
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    last_login_at = db.Column(db.DateTime)

    # Relationships
    student = db.relationship('Student', back_populates='user', uselist=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(
            password, method=current_app.config['PASSWORD_HASH_METHOD']
        )

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def get_id(self):
        return str(self.id)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        """Public profile; the password hash never leaves the model"""
        data = {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'created_at': isoformat(self.created_at),
            'last_login_at': isoformat(self.last_login_at),
        }
        if self.role == 'student' and self.student is not None:
            data['student'] = self.student.to_dict()
        return data

    def __repr__(self):
        return f'<User {self.username}>'
