from flask import Blueprint, jsonify, request
from flask_login import current_user
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.liveclass import LiveClass
from ..models.recording import Recording
from ..models.teacher import TeacherAssignment
from ..errors import Forbidden
from ..utils.decorators import teacher_required

teacher_bp = Blueprint('teacher', __name__)


def assigned_slugs():
    return TeacherAssignment.course_slugs_for(current_user.id)


@teacher_bp.route('/courses')
@teacher_required
def courses():
    """Courses assigned to the logged-in teacher"""
    slugs = assigned_slugs()
    if not slugs:
        return jsonify([])
    courses = Course.query.filter(Course.slug.in_(slugs)).order_by(Course.title).all()
    return jsonify([course.to_dict() for course in courses])


@teacher_bp.route('/students')
@teacher_required
def students():
    """Students enrolled in the assigned courses, with their progress there"""
    slugs = assigned_slugs()
    course_filter = request.args.get('course')
    if course_filter:
        if course_filter not in slugs:
            raise Forbidden('Not assigned to this course')
        slugs = [course_filter]
    if not slugs:
        return jsonify([])

    enrollments = (
        Enrollment.query.filter(Enrollment.course_slug.in_(slugs))
        .order_by(Enrollment.student_id, Enrollment.course_slug)
        .all()
    )
    grouped = {}
    for enrollment in enrollments:
        student = enrollment.student
        if student.id not in grouped:
            grouped[student.id] = {
                **student.to_dict(),
                'username': student.user.username,
                'email': student.user.email,
                'enrollments': [],
            }
        grouped[student.id]['enrollments'].append(enrollment.to_dict())
    return jsonify(list(grouped.values()))


@teacher_bp.route('/live-classes')
@teacher_required
def live_classes():
    slugs = assigned_slugs()
    if not slugs:
        return jsonify([])
    live_classes = (
        LiveClass.query.filter(LiveClass.course_slug.in_(slugs))
        .order_by(LiveClass.start_time.desc())
        .all()
    )
    return jsonify([live_class.to_dict() for live_class in live_classes])


@teacher_bp.route('/recordings')
@teacher_required
def recordings():
    slugs = assigned_slugs()
    if not slugs:
        return jsonify([])
    return jsonify([recording.to_dict() for recording in Recording.visible_for(slugs).all()])
