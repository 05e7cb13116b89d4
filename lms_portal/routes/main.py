from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from .. import db

main_bp = Blueprint('main', __name__)

@main_bp.route('/')
def index():
    return jsonify({
        'message': 'LMS Portal API',
        'auth': '/auth',
        'courses': '/courses',
    })

@main_bp.route('/health')
def health():
    """Liveness plus a round trip to the database"""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        current_app.logger.error(f"Database health check failed: {str(e)}")
        db.session.rollback()
        return jsonify({'status': 'unhealthy', 'database': 'unreachable'}), 503
    return jsonify({'status': 'healthy', 'database': 'ok'})
