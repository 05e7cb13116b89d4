from .. import db
from ..utils.dates import utcnow, isoformat

PATHWAYS = ('standalone', 'with-mba')

class Student(db.Model):
    """Student profile attached to a user account with the student role"""
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32))
    address = db.Column(db.String(255), default='')
    dob = db.Column(db.Date)
    pathway = db.Column(db.String(16), nullable=False, default='standalone')
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = db.relationship('User', back_populates='student')
    enrollments = db.relationship(
        'Enrollment', back_populates='student', lazy=True,
        order_by='Enrollment.enroll_date.desc()'
    )

    @property
    def latest_enrollment(self):
        return self.enrollments[0] if self.enrollments else None

    def __repr__(self):
        return f'<Student {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'dob': self.dob.isoformat() if self.dob else None,
            'pathway': self.pathway,
            'created_at': isoformat(self.created_at),
        }
