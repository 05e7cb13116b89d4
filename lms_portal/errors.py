"""Error taxonomy shared by the services and the blueprints.

Every error carries the HTTP status it maps to; ``register_error_handlers``
turns them into ``{"message": ...}`` JSON bodies.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class LMSError(Exception):
    status_code = 400
    message = 'Bad request'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'message': self.message}


class ValidationError(LMSError):
    status_code = 400
    message = 'Invalid input'


class AuthError(LMSError):
    status_code = 401
    message = 'Not authenticated'


class Forbidden(LMSError):
    status_code = 403
    message = 'Not authorized'


class NotFoundError(LMSError):
    status_code = 404
    message = 'Not found'


class ConflictError(LMSError):
    status_code = 409
    message = 'Conflict'


class ExpiredError(LMSError):
    status_code = 409
    message = 'Enrollment has expired'


def register_error_handlers(app, db):
    @app.errorhandler(LMSError)
    def handle_lms_error(error):
        # Discard anything a failed request flushed but did not commit
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {str(error)}")
        db.session.rollback()
        return jsonify({'message': 'Server error'}), 500
