"""Activity log.

Each event kind is its own mapped class sharing the ``activity_events`` table,
so every payload has typed columns instead of a free-form blob. ``kind`` is the
discriminator.
"""
from .. import db
from ..utils.dates import utcnow, isoformat


class ActivityEvent(db.Model):
    __tablename__ = 'activity_events'

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(32), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    # Payload columns, each used by one or more kinds
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(255))
    course_slug = db.Column(db.String(120))
    enrollment_id = db.Column(db.Integer)
    module_index = db.Column(db.Integer)
    score = db.Column(db.Float)
    passed = db.Column(db.Boolean)
    video_index = db.Column(db.Integer)
    duration_seconds = db.Column(db.Float)
    document_url = db.Column(db.String(512))

    user = db.relationship('User')

    __mapper_args__ = {
        'polymorphic_on': kind,
        'polymorphic_identity': 'event',
    }

    @classmethod
    def record(cls, **fields):
        event = cls(**fields)
        db.session.add(event)
        return event

    def payload(self):
        return {}

    def to_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'user_id': self.user_id,
            'created_at': isoformat(self.created_at),
            **self.payload(),
        }


class LoginEvent(ActivityEvent):
    __mapper_args__ = {'polymorphic_identity': 'login'}

    def payload(self):
        return {
            'username': self.user.username if self.user else None,
            'role': self.user.role if self.user else None,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
        }


class EnrollmentCreatedEvent(ActivityEvent):
    __mapper_args__ = {'polymorphic_identity': 'enrollment_created'}

    def payload(self):
        return {'enrollment_id': self.enrollment_id, 'course_slug': self.course_slug}


class ModuleCompletedEvent(ActivityEvent):
    __mapper_args__ = {'polymorphic_identity': 'module_completed'}

    def payload(self):
        return {'course_slug': self.course_slug, 'module_index': self.module_index}


class QuizAttemptedEvent(ActivityEvent):
    __mapper_args__ = {'polymorphic_identity': 'quiz_attempted'}

    def payload(self):
        return {
            'course_slug': self.course_slug,
            'module_index': self.module_index,
            'score': self.score,
            'passed': self.passed,
        }


class WatchTimeEvent(ActivityEvent):
    """One segment of video playback; segments add up, nothing is deduplicated"""
    __mapper_args__ = {'polymorphic_identity': 'watch_time'}

    def payload(self):
        return {
            'course_slug': self.course_slug,
            'module_index': self.module_index,
            'video_index': self.video_index,
            'duration_seconds': self.duration_seconds,
        }


class DocumentViewEvent(ActivityEvent):
    __mapper_args__ = {'polymorphic_identity': 'document_view'}

    @classmethod
    def seen(cls, enrollment_id, document_url):
        return cls.query.filter_by(enrollment_id=enrollment_id, document_url=document_url).first() is not None

    def payload(self):
        return {
            'course_slug': self.course_slug,
            'module_index': self.module_index,
            'document_url': self.document_url,
        }
