from .. import db
from ..utils.dates import utcnow, isoformat

COURSE_TYPES = ('standalone', 'with-mba')
LIVE_CLASS_FREQUENCIES = ('weekly', 'biweekly', 'monthly')

class Course(db.Model):
    """Course model for storing course information"""
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False, default='standalone')
    description = db.Column(db.Text, default='')

    # Live class schedule
    live_class_enabled = db.Column(db.Boolean, default=False, nullable=False)
    live_class_frequency = db.Column(db.String(16), default='weekly')
    live_class_day_of_week = db.Column(db.String(16), default='Monday')
    live_class_duration_min = db.Column(db.Integer, default=60)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    modules = db.relationship(
        'CourseModule', back_populates='course', lazy=True,
        order_by='CourseModule.position', cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Course {self.slug}>'

    @property
    def module_count(self):
        return len(self.modules)

    def has_module(self, module_index):
        return 0 <= module_index < self.module_count

    def set_modules(self, modules):
        """Replace the ordered module list; list position becomes the module index"""
        self.modules = [
            CourseModule.from_dict(position, module) for position, module in enumerate(modules)
        ]

    @property
    def live_class_config(self):
        return {
            'enabled': self.live_class_enabled,
            'frequency': self.live_class_frequency,
            'day_of_week': self.live_class_day_of_week,
            'duration_min': self.live_class_duration_min,
        }

    def set_live_class_config(self, config):
        self.live_class_enabled = bool(config.get('enabled', False))
        self.live_class_frequency = config.get('frequency', self.live_class_frequency)
        self.live_class_day_of_week = config.get('dayOfWeek', self.live_class_day_of_week)
        self.live_class_duration_min = config.get('durationMin', self.live_class_duration_min)

    def to_summary(self):
        return {
            'slug': self.slug,
            'title': self.title,
            'type': self.type,
        }

    def to_dict(self):
        """Convert course to dictionary"""
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'type': self.type,
            'description': self.description,
            'live_class_config': self.live_class_config,
            'modules': [module.to_dict() for module in self.modules],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class CourseModule(db.Model):
    """One ordered unit of course content"""
    __tablename__ = 'course_modules'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    position = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    videos = db.Column(db.JSON, default=list, nullable=False)
    documents = db.Column(db.JSON, default=list, nullable=False)
    quiz_id = db.Column(db.String(64))

    course = db.relationship('Course', back_populates='modules')

    @classmethod
    def from_dict(cls, position, data):
        return cls(
            position=position,
            title=data['title'],
            videos=[
                {
                    'title': video['title'],
                    'url': video['url'],
                    'duration': video.get('duration', 0),
                    'video_id': video.get('videoId'),
                }
                for video in data.get('videos') or []
            ],
            documents=[
                {'title': document['title'], 'url': document['url']}
                for document in data.get('documents') or []
            ],
            quiz_id=data.get('quizId'),
        )

    def to_dict(self):
        return {
            'index': self.position,
            'title': self.title,
            'videos': self.videos or [],
            'documents': self.documents or [],
            'quiz_id': self.quiz_id,
        }
