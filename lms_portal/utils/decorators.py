"""Route guards.

Authentication is always checked before the role, and neither check writes
anything: they only read the session bound to the request.
"""
from functools import wraps
from flask_login import current_user
from ..errors import AuthError, Forbidden, NotFoundError
from ..models.session import session_manager


def current_session():
    """Live session for this request or raise ``AuthError``"""
    auth_session = session_manager.current()
    if auth_session is None or not current_user.is_authenticated:
        raise AuthError('Not authenticated')
    return auth_session


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        current_session()
        return view(*args, **kwargs)
    return wrapped


def roles_required(*roles):
    allowed = frozenset(roles)

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            auth_session = current_session()
            if auth_session.role not in allowed:
                raise Forbidden(f"Not authorized. {' or '.join(sorted(allowed)).capitalize()} access required.")
            return view(*args, **kwargs)
        return wrapped
    return decorator


admin_required = roles_required('admin')
student_required = roles_required('student')
teacher_required = roles_required('teacher')


def current_student():
    """Student profile of the logged-in user"""
    current_session()
    student = current_user.student
    if student is None:
        raise NotFoundError('Student not found')
    return student
