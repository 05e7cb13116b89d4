from flask import Blueprint, jsonify, current_app
import logging
from ..models.enrollment import Enrollment
from ..models.event import ModuleCompletedEvent, QuizAttemptedEvent
from ..errors import Forbidden, NotFoundError, ValidationError
from ..utils.decorators import student_required, current_student
from ..utils.validators import get_json_body, get_int, get_str
from .. import db

logger = logging.getLogger(__name__)

enrollments_bp = Blueprint('enrollments', __name__)


def resolve_enrollment(data):
    """Enrollment a progress write applies to.

    ``studentId`` may be given but must be the caller's own profile. Without a
    ``courseSlug`` the student's most recent enrollment is used.
    """
    student = current_student()
    student_id = get_int(data, 'studentId', required=False)
    if student_id is not None and student_id != student.id:
        raise Forbidden('Not authorized to update progress for another student')

    course_slug = get_str(data, 'courseSlug', required=False) or get_str(data, 'slug', required=False)
    if course_slug:
        enrollment = Enrollment.find(student.id, course_slug)
    else:
        enrollment = student.latest_enrollment
    if enrollment is None:
        raise NotFoundError('Enrollment not found')
    return student, enrollment


@enrollments_bp.route('/complete', methods=['POST'])
@student_required
def complete_module():
    """Record module completion"""
    data = get_json_body()
    module_index = get_int(data, 'moduleIndex')
    student, enrollment = resolve_enrollment(data)

    added = enrollment.mark_module_complete(module_index)
    if added:
        ModuleCompletedEvent.record(
            user_id=student.user_id,
            enrollment_id=enrollment.id,
            course_slug=enrollment.course_slug,
            module_index=module_index,
        )
        db.session.commit()
        logger.info(f"Student {student.id} completed module {module_index} of {enrollment.course_slug}")

    return jsonify({
        'success': True,
        'message': 'Module marked as completed',
        'moduleIndex': module_index,
        'completedModules': enrollment.completed_indices,
    })


@enrollments_bp.route('/quiz-attempt', methods=['POST'])
@student_required
def quiz_attempt():
    """Record quiz attempt"""
    data = get_json_body()
    module_index = get_int(data, 'moduleIndex')
    score = data.get('score')
    if score is None:
        raise ValidationError('score is required')
    student, enrollment = resolve_enrollment(data)

    attempt = enrollment.record_quiz_attempt(
        module_index, score, current_app.config['QUIZ_PASSING_SCORE']
    )
    QuizAttemptedEvent.record(
        user_id=student.user_id,
        enrollment_id=enrollment.id,
        course_slug=enrollment.course_slug,
        module_index=module_index,
        score=attempt.score,
        passed=attempt.passed,
    )
    db.session.commit()
    logger.info(f"Student {student.id} scored {attempt.score} on module {module_index} of {enrollment.course_slug}")

    return jsonify({
        'success': True,
        'message': 'Quiz attempt recorded successfully',
        'attempt': attempt.to_dict(),
        'attempts': len(enrollment.quiz_attempts),
    })
