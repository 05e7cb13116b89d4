from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite
from .. import db
from ..errors import ConflictError, ExpiredError, ValidationError
from ..utils.dates import utcnow, isoformat
from .event import WatchTimeEvent, DocumentViewEvent
import logging

logger = logging.getLogger(__name__)

MIN_QUIZ_SCORE = 0
MAX_QUIZ_SCORE = 100
MAX_WATCH_SEGMENT_SECONDS = 24 * 60 * 60


def insert_ignore(table, values, conflict_columns):
    """Insert a row unless it collides with a unique key. Returns True if a row was written.

    The conflict is resolved by the database in a single statement, so two
    concurrent requests inserting the same key cannot both succeed or fail.
    """
    dialect = db.session.get_bind().dialect.name
    if dialect == 'postgresql':
        statement = postgresql.insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns
        )
    elif dialect == 'sqlite':
        statement = sqlite.insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns
        )
    else:
        try:
            with db.session.begin_nested():
                db.session.execute(table.insert().values(**values))
            return True
        except IntegrityError:
            return False
    return db.session.execute(statement).rowcount > 0


class Enrollment(db.Model):
    """Enrollment model for tracking a student's access to and progress in one course"""
    __tablename__ = 'enrollments'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    course_slug = db.Column(db.String(120), db.ForeignKey('courses.slug'), nullable=False, index=True)
    enroll_date = db.Column(db.DateTime, default=utcnow, nullable=False)
    valid_until = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    student = db.relationship('Student', back_populates='enrollments')
    course = db.relationship('Course', lazy='joined')
    completed_modules = db.relationship(
        'CompletedModule', lazy=True, order_by='CompletedModule.module_index'
    )
    quiz_attempts = db.relationship(
        'QuizAttempt', lazy=True, order_by='QuizAttempt.id'
    )

    __table_args__ = (
        db.UniqueConstraint('student_id', 'course_slug', name='uq_enrollment_student_course'),
    )

    def __repr__(self):
        return f'<Enrollment {self.student_id} - {self.course_slug}>'

    @classmethod
    def find(cls, student_id, course_slug):
        return cls.query.filter_by(student_id=student_id, course_slug=course_slug).first()

    @classmethod
    def create(cls, student, course, valid_until, commit=True):
        """Enroll a student; a (student, course) pair can only ever hold one enrollment"""
        if valid_until <= utcnow():
            raise ValidationError('validUntil must be in the future')

        existing = cls.find(student.id, course.slug)
        if existing:
            if existing.is_expired():
                raise ConflictError('Enrollment exists but has expired; extend its validity instead')
            raise ConflictError('Student is already enrolled in this course')

        enrollment = cls(
            student_id=student.id,
            course_slug=course.slug,
            enroll_date=utcnow(),
            valid_until=valid_until,
        )
        db.session.add(enrollment)
        try:
            if commit:
                db.session.commit()
            else:
                db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Student is already enrolled in this course')

        logger.info(f"Enrolled student {student.id} in {course.slug} until {valid_until.isoformat()}")
        return enrollment

    def is_expired(self, now=None):
        return (now or utcnow()) > self.valid_until

    @property
    def status(self):
        return 'expired' if self.is_expired() else 'active'

    def ensure_active(self):
        if self.is_expired():
            raise ExpiredError(f'Enrollment in {self.course_slug} expired on {self.valid_until.date().isoformat()}')

    def _validate_module_index(self, module_index):
        if isinstance(module_index, bool) or not isinstance(module_index, int):
            raise ValidationError('moduleIndex must be an integer')
        if not self.course.has_module(module_index):
            raise ValidationError(
                f'moduleIndex {module_index} is out of range for {self.course_slug} '
                f'({self.course.module_count} modules)'
            )

    def mark_module_complete(self, module_index):
        """Add a module to the completed set. Returns False when it was already there."""
        self._validate_module_index(module_index)
        self.ensure_active()

        added = insert_ignore(
            CompletedModule.__table__,
            {'enrollment_id': self.id, 'module_index': module_index, 'completed_at': utcnow()},
            ['enrollment_id', 'module_index'],
        )
        db.session.commit()
        return added

    def record_quiz_attempt(self, module_index, score, passing_score):
        self._validate_module_index(module_index)
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValidationError('score must be a number')
        if not MIN_QUIZ_SCORE <= score <= MAX_QUIZ_SCORE:
            raise ValidationError(f'score must be between {MIN_QUIZ_SCORE} and {MAX_QUIZ_SCORE}')
        self.ensure_active()

        module = self.course.modules[module_index]
        attempt = QuizAttempt(
            enrollment_id=self.id,
            module_index=module_index,
            quiz_id=module.quiz_id,
            score=score,
            max_score=MAX_QUIZ_SCORE,
            passed=score >= passing_score,
            attempted_at=utcnow(),
        )
        db.session.add(attempt)
        db.session.commit()
        return attempt

    def record_watch_time(self, module_index, video_index, duration):
        """Append one playback segment of ``duration`` seconds"""
        self._validate_module_index(module_index)
        videos = self.course.modules[module_index].videos or []
        if isinstance(video_index, bool) or not isinstance(video_index, int) or not 0 <= video_index < len(videos):
            raise ValidationError(f'videoIndex is out of range for module {module_index}')
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise ValidationError('duration must be a number')
        if not 0 < duration <= MAX_WATCH_SEGMENT_SECONDS:
            raise ValidationError(f'duration must be between 0 and {MAX_WATCH_SEGMENT_SECONDS} seconds')
        self.ensure_active()

        event = WatchTimeEvent.record(
            user_id=self.student.user_id,
            enrollment_id=self.id,
            course_slug=self.course_slug,
            module_index=module_index,
            video_index=video_index,
            duration_seconds=duration,
        )
        db.session.commit()
        return event

    def record_document_view(self, module_index, document_url):
        """Remember that a module document was opened. Returns False when it was already seen."""
        self._validate_module_index(module_index)
        documents = self.course.modules[module_index].documents or []
        if document_url not in [document['url'] for document in documents]:
            raise ValidationError(f'docUrl is not a document of module {module_index}')
        self.ensure_active()

        if DocumentViewEvent.seen(self.id, document_url):
            return False
        DocumentViewEvent.record(
            user_id=self.student.user_id,
            enrollment_id=self.id,
            course_slug=self.course_slug,
            module_index=module_index,
            document_url=document_url,
        )
        db.session.commit()
        return True

    def watch_seconds_by_module(self):
        rows = (
            db.session.query(WatchTimeEvent.module_index, db.func.sum(WatchTimeEvent.duration_seconds))
            .filter(WatchTimeEvent.enrollment_id == self.id)
            .group_by(WatchTimeEvent.module_index)
            .all()
        )
        return {module_index: total or 0 for module_index, total in rows}

    def viewed_documents(self):
        return {
            event.document_url
            for event in DocumentViewEvent.query.filter_by(enrollment_id=self.id)
        }

    def extend(self, valid_until):
        if valid_until <= self.valid_until:
            raise ValidationError(
                f'validUntil must be later than the current validity ({self.valid_until.isoformat()})'
            )
        self.valid_until = valid_until
        db.session.commit()
        logger.info(f"Enrollment {self.id} now valid until {valid_until.isoformat()}")

    @property
    def completed_indices(self):
        return [completed.module_index for completed in self.completed_modules]

    @property
    def percent_complete(self):
        total = self.course.module_count if self.course else 0
        if not total:
            return 0
        # modules removed from the course after completion no longer count
        done = sum(1 for index in self.completed_indices if index < total)
        return round(done / total * 100)

    def to_dict(self):
        """Convert enrollment to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.name if self.student else None,
            'course_slug': self.course_slug,
            'enroll_date': isoformat(self.enroll_date),
            'valid_until': isoformat(self.valid_until),
            'status': self.status,
            'completed_modules': [completed.to_dict() for completed in self.completed_modules],
            'quiz_attempts': [attempt.to_dict() for attempt in self.quiz_attempts],
            'total_modules': self.course.module_count if self.course else 0,
            'percent_complete': self.percent_complete,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class CompletedModule(db.Model):
    __tablename__ = 'completed_modules'

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.id'), nullable=False)
    module_index = db.Column(db.Integer, nullable=False)
    completed_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('enrollment_id', 'module_index', name='uq_completed_module'),
    )

    def to_dict(self):
        return {
            'module_index': self.module_index,
            'completed_at': isoformat(self.completed_at),
        }


class QuizAttempt(db.Model):
    """Append-only history of quiz attempts; rows are never updated"""
    __tablename__ = 'quiz_attempts'

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.id'), nullable=False, index=True)
    module_index = db.Column(db.Integer, nullable=False)
    quiz_id = db.Column(db.String(64))
    score = db.Column(db.Float, nullable=False)
    max_score = db.Column(db.Float, nullable=False, default=MAX_QUIZ_SCORE)
    passed = db.Column(db.Boolean, nullable=False)
    attempted_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'module_index': self.module_index,
            'quiz_id': self.quiz_id,
            'score': self.score,
            'max_score': self.max_score,
            'passed': self.passed,
            'attempted_at': isoformat(self.attempted_at),
        }
