from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from .config import Config
import logging.config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize logging
    logging.config.dictConfig(app.config['LOGGING'])

    # Initialize extensions
    from .models.session import session_manager
    db.init_app(app)
    login_manager.init_app(app)
    # revocation is handled by the server-side session rows
    login_manager.session_protection = None
    migrate.init_app(app, db)
    session_manager.init_app(app)

    from .errors import register_error_handlers
    register_error_handlers(app, db)

    # Register blueprints
    from .routes.main import main_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.courses import courses_bp
    from .routes.enrollments import enrollments_bp
    from .routes.student import student_bp
    from .routes.recordings import recordings_bp
    from .routes.teacher import teacher_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(courses_bp, url_prefix='/courses')
    app.register_blueprint(enrollments_bp, url_prefix='/enrollments')
    app.register_blueprint(student_bp, url_prefix='/student')
    app.register_blueprint(recordings_bp, url_prefix='/recordings')
    app.register_blueprint(teacher_bp, url_prefix='/teacher')

    # Create database tables
    with app.app_context():
        from . import models  # noqa: F401
        if app.config['RESET_DB_ON_START']:
            app.logger.warning("RESET_DB_ON_START is set, dropping all tables")
            db.drop_all()
        db.create_all()

    return app
