from .. import db
from ..utils.dates import utcnow, isoformat

LIVE_CLASS_STATUSES = ('scheduled', 'completed', 'cancelled')

class LiveClass(db.Model):
    __tablename__ = 'live_classes'

    id = db.Column(db.Integer, primary_key=True)
    course_slug = db.Column(db.String(120), db.ForeignKey('courses.slug'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    meet_link = db.Column(db.String(512), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(16), nullable=False, default='scheduled')
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    @classmethod
    def upcoming(cls, course_slugs=None):
        query = cls.query.filter(cls.start_time >= utcnow(), cls.status == 'scheduled')
        if course_slugs is not None:
            query = query.filter(cls.course_slug.in_(course_slugs))
        return query.order_by(cls.start_time)

    def __repr__(self):
        return f'<LiveClass {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'course_slug': self.course_slug,
            'title': self.title,
            'description': self.description,
            'meet_link': self.meet_link,
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }
