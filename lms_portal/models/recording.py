from .. import db
from ..utils.dates import utcnow, isoformat


class Recording(db.Model):
    """Link to the recording of a taught class, filed under one course module"""
    __tablename__ = 'recordings'

    id = db.Column(db.Integer, primary_key=True)
    course_slug = db.Column(db.String(120), db.ForeignKey('courses.slug'), nullable=False)
    module_index = db.Column(db.Integer, nullable=False, default=0)
    class_date = db.Column(db.DateTime, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default='')
    file_url = db.Column(db.String(512), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    uploaded_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    is_visible = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        db.Index('ix_recordings_course_module_date', 'course_slug', 'module_index', 'class_date'),
    )

    @classmethod
    def visible_for(cls, course_slugs):
        return (
            cls.query.filter(cls.course_slug.in_(course_slugs), cls.is_visible.is_(True))
            .order_by(cls.uploaded_at.desc(), cls.id.desc())
        )

    def __repr__(self):
        return f'<Recording {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'course_slug': self.course_slug,
            'module_index': self.module_index,
            'class_date': isoformat(self.class_date),
            'title': self.title,
            'description': self.description,
            'file_url': self.file_url,
            'uploaded_by': self.uploaded_by,
            'uploaded_at': isoformat(self.uploaded_at),
            'is_visible': self.is_visible,
        }
