from flask import Blueprint, jsonify
import logging
from ..models.enrollment import Enrollment
from ..models.liveclass import LiveClass
from ..models.recording import Recording
from ..errors import Forbidden, NotFoundError, ValidationError
from ..utils.decorators import student_required, current_student
from ..utils.validators import get_json_body, get_int, get_str
from .enrollments import resolve_enrollment
from ..utils.dates import isoformat
from .. import db

logger = logging.getLogger(__name__)

student_bp = Blueprint('student', __name__)


def course_progress(enrollment):
    """Per-module view of one enrollment; readable whether or not it has expired"""
    course = enrollment.course
    completed = set(enrollment.completed_indices)
    watch_seconds = enrollment.watch_seconds_by_module()
    viewed = enrollment.viewed_documents()
    attempts_by_module = {}
    for attempt in enrollment.quiz_attempts:
        attempts_by_module.setdefault(attempt.module_index, []).append(attempt)

    modules = []
    for module in course.modules:
        attempts = attempts_by_module.get(module.position, [])
        modules.append({
            **module.to_dict(),
            'completed': module.position in completed,
            'quiz_attempts': len(attempts),
            'best_score': max((attempt.score for attempt in attempts), default=None),
            'quiz_passed': any(attempt.passed for attempt in attempts),
            'watch_time_seconds': watch_seconds.get(module.position, 0),
            'documents_viewed': sum(1 for document in module.documents or [] if document['url'] in viewed),
        })

    return {
        **course.to_summary(),
        'description': course.description,
        'progress': enrollment.percent_complete,
        'modules': modules,
        'enrollment': {
            'id': enrollment.id,
            'enroll_date': isoformat(enrollment.enroll_date),
            'valid_until': isoformat(enrollment.valid_until),
            'status': enrollment.status,
            'completed_modules': sorted(completed),
        },
    }


@student_bp.route('/courses')
@student_required
def courses():
    """Courses the student is enrolled in, with progress"""
    student = current_student()
    return jsonify([course_progress(enrollment) for enrollment in student.enrollments])


@student_bp.route('/progress/<slug>')
@student_required
def progress(slug):
    student = current_student()
    enrollment = Enrollment.find(student.id, slug)
    if enrollment is None:
        raise NotFoundError('Enrollment not found')
    data = course_progress(enrollment)
    data['quiz_attempts'] = [attempt.to_dict() for attempt in enrollment.quiz_attempts]
    return jsonify(data)


@student_bp.route('/live-classes')
@student_required
def live_classes():
    """Upcoming live classes for courses with an active enrollment"""
    student = current_student()
    slugs = [enrollment.course_slug for enrollment in student.enrollments if not enrollment.is_expired()]
    if not slugs:
        return jsonify([])
    return jsonify([live_class.to_dict() for live_class in LiveClass.upcoming(slugs).all()])


@student_bp.route('/profile')
@student_required
def profile():
    return jsonify(current_student().to_dict())


@student_bp.route('/profile', methods=['PUT'])
@student_required
def update_profile():
    student = current_student()
    data = get_json_body()

    # Update fields
    name = get_str(data, 'name', required=False, max_length=120)
    phone = get_str(data, 'phone', required=False, max_length=32)
    address = get_str(data, 'address', required=False, max_length=255)
    if name:
        student.name = name
    if phone:
        student.phone = phone
    if address:
        student.address = address

    db.session.commit()
    return jsonify({'message': 'Profile updated successfully', 'student': student.to_dict()})


@student_bp.route('/watch-time', methods=['POST'])
@student_required
def record_watch_time():
    data = get_json_body()
    module_index = get_int(data, 'moduleIndex')
    video_index = get_int(data, 'videoIndex')
    duration = data.get('duration')
    if duration is None:
        raise ValidationError('duration is required')
    _, enrollment = resolve_enrollment(data)

    enrollment.record_watch_time(module_index, video_index, duration)
    return jsonify({'message': 'Watch time recorded successfully'})


@student_bp.route('/view-document', methods=['POST'])
@student_required
def record_document_view():
    data = get_json_body()
    module_index = get_int(data, 'moduleIndex')
    document_url = get_str(data, 'docUrl', max_length=512)
    student, enrollment = resolve_enrollment(data)

    recorded = enrollment.record_document_view(module_index, document_url)
    if recorded:
        logger.info(f"Student {student.id} opened a document in module {module_index} of {enrollment.course_slug}")
    return jsonify({'message': 'Document view recorded successfully', 'recorded': recorded})


@student_bp.route('/recordings')
@student_required
def recordings():
    """Visible recordings for courses with an active enrollment"""
    student = current_student()
    slugs = [enrollment.course_slug for enrollment in student.enrollments if not enrollment.is_expired()]
    if not slugs:
        return jsonify([])
    return jsonify([recording.to_dict() for recording in Recording.visible_for(slugs).all()])


@student_bp.route('/recordings/course/<slug>')
@student_required
def course_recordings(slug):
    enrollment = Enrollment.find(current_student().id, slug)
    if enrollment is None:
        raise Forbidden('Not enrolled in this course')
    enrollment.ensure_active()
    return jsonify([recording.to_dict() for recording in Recording.visible_for([slug]).all()])
