"""Server-side login sessions.

The browser only holds an opaque token inside Flask's signed session cookie.
Whether that token is still valid is decided by the ``auth_sessions`` table
on every request, so destroying a row logs the client out immediately.
"""
from flask import g, session
import click
import secrets
import logging
from .. import db, login_manager
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'sid'


class AuthSession(db.Model):
    __tablename__ = 'auth_sessions'

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    user = db.relationship('User')

    def is_expired(self, now=None):
        return (now or utcnow()) >= self.expires_at


class SessionManager:
    """Creates, resolves and destroys ``AuthSession`` rows"""

    def __init__(self, app=None):
        self.lifetime = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.lifetime = app.config['SESSION_LIFETIME']
        app.extensions['session_manager'] = self

        @app.cli.command('purge-sessions')
        def purge_sessions_command():
            """Delete expired login sessions."""
            click.echo(f"Removed {self.purge_expired()} expired session(s)")

    def create(self, user):
        now = utcnow()
        # A token already held by this client is replaced, never left behind
        previous = session.get(SESSION_TOKEN_KEY)
        if previous:
            AuthSession.query.filter_by(id=previous).delete(synchronize_session=False)
        AuthSession.query.filter(
            AuthSession.user_id == user.id, AuthSession.expires_at <= now
        ).delete(synchronize_session=False)
        auth_session = AuthSession(
            id=secrets.token_urlsafe(32),
            user_id=user.id,
            role=user.role,
            created_at=now,
            expires_at=now + self.lifetime,
        )
        db.session.add(auth_session)
        db.session.commit()

        session.clear()
        session.permanent = True
        session[SESSION_TOKEN_KEY] = auth_session.id
        g.auth_session = auth_session
        return auth_session

    def resolve(self, token):
        """Return the live session for a token, or None. Read-only; expired rows are left for ``purge_expired``."""
        if not token:
            return None
        auth_session = db.session.get(AuthSession, token)
        if auth_session is None or auth_session.is_expired():
            return None
        return auth_session

    def current(self):
        """Session bound to the current request, looked up once per request"""
        if 'auth_session' not in g:
            g.auth_session = self.resolve(session.get(SESSION_TOKEN_KEY))
        return g.auth_session

    def destroy(self, token=None):
        if token is None:
            token = session.get(SESSION_TOKEN_KEY)
        if token:
            AuthSession.query.filter_by(id=token).delete()
            db.session.commit()
        session.clear()
        g.auth_session = None

    def destroy_all_for(self, user_id, keep=None):
        query = AuthSession.query.filter(AuthSession.user_id == user_id)
        if keep is not None:
            query = query.filter(AuthSession.id != keep)
        removed = query.delete(synchronize_session=False)
        db.session.commit()
        return removed

    def purge_expired(self):
        removed = AuthSession.query.filter(AuthSession.expires_at <= utcnow()).delete(
            synchronize_session=False
        )
        db.session.commit()
        if removed:
            logger.info(f"Purged {removed} expired session(s)")
        return removed


session_manager = SessionManager()


@login_manager.request_loader
def load_user_from_session(request):
    auth_session = session_manager.current()
    if auth_session is None:
        return None
    return auth_session.user
