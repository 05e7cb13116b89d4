from lms_portal import create_app, db
from lms_portal import models  # noqa: F401

app = create_app()

with app.app_context():
    # Drop all tables
    db.drop_all()

    # Create all tables
    db.create_all()

    print("Database initialized successfully!")
