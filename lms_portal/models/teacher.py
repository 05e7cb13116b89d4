from .. import db
from ..utils.dates import utcnow, isoformat


class TeacherAssignment(db.Model):
    """Links a user with the teacher role to a course they may follow"""
    __tablename__ = 'teacher_assignments'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    course_slug = db.Column(db.String(120), db.ForeignKey('courses.slug'), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    assigned_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # Relationships
    teacher = db.relationship('User', foreign_keys=[teacher_id])
    course = db.relationship('Course')

    __table_args__ = (
        db.UniqueConstraint('teacher_id', 'course_slug', name='uq_teacher_course'),
    )

    @classmethod
    def course_slugs_for(cls, teacher_id):
        return [
            assignment.course_slug
            for assignment in cls.query.filter_by(teacher_id=teacher_id).order_by(cls.course_slug)
        ]

    def __repr__(self):
        return f'<TeacherAssignment {self.teacher_id} - {self.course_slug}>'

    def to_dict(self):
        return {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'teacher_username': self.teacher.username if self.teacher else None,
            'course_slug': self.course_slug,
            'assigned_by': self.assigned_by,
            'assigned_at': isoformat(self.assigned_at),
        }
