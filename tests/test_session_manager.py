from datetime import timedelta

from flask import session

from lms_portal import db
from lms_portal.models import AuthSession, User, session_manager
from lms_portal.models.session import SESSION_TOKEN_KEY
from lms_portal.utils.dates import utcnow


def open_session(app, user_id):
    """Log a user in from a fresh client; returns the new token"""
    with app.test_request_context():
        return session_manager.create(db.session.get(User, user_id)).id


def test_create_binds_token_to_cookie_session(app, student):
    with app.test_request_context():
        user = db.session.get(User, student['id'])
        auth_session = session_manager.create(user)

        assert session[SESSION_TOKEN_KEY] == auth_session.id
        assert session.permanent
        assert auth_session.role == 'student'
        assert auth_session.expires_at - auth_session.created_at == app.config['SESSION_LIFETIME']
        assert session_manager.current() is auth_session


def test_tokens_are_unique(app, student):
    tokens = {open_session(app, student['id']) for _ in range(5)}

    assert len(tokens) == 5
    with app.app_context():
        assert AuthSession.query.count() == 5


def test_create_replaces_token_held_by_the_same_client(app, student):
    with app.test_request_context():
        user = db.session.get(User, student['id'])
        first = session_manager.create(user).id
        second = session_manager.create(user).id

        assert session[SESSION_TOKEN_KEY] == second
        assert session_manager.resolve(first) is None
        assert [row.id for row in AuthSession.query.all()] == [second]


def test_resolve(app, student):
    with app.test_request_context():
        auth_session = session_manager.create(db.session.get(User, student['id']))

        assert session_manager.resolve(auth_session.id) is auth_session
        assert session_manager.resolve('unknown-token') is None
        assert session_manager.resolve(None) is None


def test_resolve_ignores_expired_sessions_without_deleting(app, student):
    with app.test_request_context():
        auth_session = session_manager.create(db.session.get(User, student['id']))
        auth_session.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()

        assert session_manager.resolve(auth_session.id) is None
        assert AuthSession.query.count() == 1


def test_destroy(app, student):
    with app.test_request_context():
        auth_session = session_manager.create(db.session.get(User, student['id']))
        token = auth_session.id

        session_manager.destroy()

        assert SESSION_TOKEN_KEY not in session
        assert session_manager.current() is None
        assert session_manager.resolve(token) is None


def test_destroy_all_for_keeps_current(app, student):
    open_session(app, student['id'])
    open_session(app, student['id'])
    current = open_session(app, student['id'])

    with app.app_context():
        removed = session_manager.destroy_all_for(student['id'], keep=current)

        assert removed == 2
        assert [row.id for row in AuthSession.query.all()] == [current]


def test_purge_expired(app, student):
    stale = open_session(app, student['id'])
    live = open_session(app, student['id'])

    with app.app_context():
        db.session.get(AuthSession, stale).expires_at = utcnow() - timedelta(days=1)
        db.session.commit()

        assert session_manager.purge_expired() == 1
        assert [row.id for row in AuthSession.query.all()] == [live]


def test_purge_sessions_command(app, student):
    with app.test_request_context():
        auth_session = session_manager.create(db.session.get(User, student['id']))
        auth_session.expires_at = utcnow() - timedelta(days=1)
        db.session.commit()

    result = app.test_cli_runner().invoke(args=['purge-sessions'])

    assert 'Removed 1 expired session(s)' in result.output
