from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import IntegrityError
import logging
from ..models.user import User
from ..models.student import Student, PATHWAYS
from ..models.enrollment import Enrollment
from ..models.liveclass import LiveClass, LIVE_CLASS_STATUSES
from ..models.teacher import TeacherAssignment
from ..models.event import EnrollmentCreatedEvent
from ..errors import ConflictError, NotFoundError, ValidationError
from ..utils.auth_service import auth_service
from ..utils.dashboard import compute_trends, dashboard_stats, recent_logins
from ..utils.dates import utcnow, add_months
from ..utils.decorators import admin_required
from ..utils.validators import (
    get_json_body, require_fields, get_int, get_str, get_datetime, check, validate_choice
)
from .courses import get_course_or_404
from .. import db

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def get_student_or_404(student_id):
    student = db.session.get(Student, student_id)
    if not student:
        raise NotFoundError('Student not found')
    return student


def get_months(data, field, required=True):
    months = get_int(data, field, required=required)
    if months is None:
        return None
    limit = current_app.config['MAX_VALIDITY_MONTHS']
    if not 1 <= months <= limit:
        raise ValidationError(f'{field} must be between 1 and {limit}')
    return months


def shift_months(moment, months):
    try:
        return add_months(moment, months)
    except (ValueError, OverflowError):
        raise ValidationError('Resulting validity date is out of range')


def validity_from(data):
    """``validUntil`` wins over ``validMonths``; the configured default applies otherwise"""
    valid_until = get_datetime(data, 'validUntil', required=False)
    if valid_until is None:
        months = get_months(data, 'validMonths', required=False) or current_app.config['DEFAULT_VALIDITY_MONTHS']
        valid_until = shift_months(utcnow(), months)
    if valid_until <= utcnow():
        raise ValidationError('validUntil must be in the future')
    return valid_until


def enroll(student, course, valid_until):
    """Stage an enrollment and its event; the caller commits"""
    enrollment = Enrollment.create(student, course, valid_until, commit=False)
    EnrollmentCreatedEvent.record(
        user_id=student.user_id,
        enrollment_id=enrollment.id,
        course_slug=course.slug,
    )
    return enrollment


def student_details(student):
    return {
        **student.to_dict(),
        'email': student.user.email,
        'enrollments': [enrollment.to_dict() for enrollment in student.enrollments],
    }


# Students

@admin_bp.route('/students')
@admin_required
def list_students():
    """Get all students"""
    students = Student.query.order_by(Student.created_at.desc()).all()
    return jsonify([student_details(student) for student in students])


@admin_bp.route('/students/<int:student_id>')
@admin_required
def get_student(student_id):
    return jsonify(student_details(get_student_or_404(student_id)))


@admin_bp.route('/students', methods=['POST'])
@admin_required
def create_student():
    """Create the user account and student profile, optionally enrolling in one course"""
    data = get_json_body()
    require_fields(data, 'email', 'password', 'name')
    email = get_str(data, 'email')
    name = get_str(data, 'name', max_length=120)
    pathway = get_str(data, 'pathway', required=False) or 'standalone'
    check(validate_choice(pathway, PATHWAYS, 'pathway'))
    phone = get_str(data, 'phone', required=False, max_length=32)
    address = get_str(data, 'address', required=False, max_length=255) or ''
    dob = get_datetime(data, 'dob', required=False)

    course_slug = get_str(data, 'courseSlug', required=False)
    course = get_course_or_404(course_slug) if course_slug else None
    valid_until = validity_from(data) if course else None

    # Derive a simple username from email prefix
    username = get_str(data, 'username', required=False) or email.split('@')[0]

    # Account, profile and enrollment are committed together or not at all
    user = auth_service.register(username, email, data['password'], 'student', name=name, commit=False)
    student = user.student
    student.phone = phone
    student.address = address
    student.dob = dob.date() if dob else None
    student.pathway = pathway
    enrollment = enroll(student, course, valid_until) if course else None
    db.session.commit()

    logger.info(f"Admin created student {student.id}")
    return jsonify({
        'message': 'Student created successfully',
        'student': {**student.to_dict(), 'email': user.email},
        'enrollment': enrollment.to_dict() if enrollment else None,
    }), 201


@admin_bp.route('/students/<int:student_id>', methods=['PUT'])
@admin_required
def update_student(student_id):
    student = get_student_or_404(student_id)
    data = get_json_body()

    # Update fields
    name = get_str(data, 'name', required=False, max_length=120)
    phone = get_str(data, 'phone', required=False, max_length=32)
    address = get_str(data, 'address', required=False, max_length=255)
    pathway = get_str(data, 'pathway', required=False)
    dob = get_datetime(data, 'dob', required=False)
    if name:
        student.name = name
    if phone:
        student.phone = phone
    if address:
        student.address = address
    if dob:
        student.dob = dob.date()
    if pathway:
        check(validate_choice(pathway, PATHWAYS, 'pathway'))
        student.pathway = pathway

    db.session.commit()
    return jsonify({'message': 'Student updated successfully', 'student': student.to_dict()})


# Enrollments

@admin_bp.route('/enrollments')
@admin_required
def list_enrollments():
    """Get all enrollments, newest first"""
    enrollments = Enrollment.query.order_by(Enrollment.enroll_date.desc()).all()
    return jsonify([enrollment.to_dict() for enrollment in enrollments])


@admin_bp.route('/enrollments/course/<slug>')
@admin_required
def course_enrollments(slug):
    get_course_or_404(slug)
    enrollments = (
        Enrollment.query.filter_by(course_slug=slug)
        .order_by(Enrollment.enroll_date.desc())
        .all()
    )
    return jsonify([enrollment.to_dict() for enrollment in enrollments])


@admin_bp.route('/enrollments', methods=['POST'])
@admin_required
def create_enrollment():
    data = get_json_body()
    require_fields(data, 'studentId', 'courseSlug')
    student = get_student_or_404(get_int(data, 'studentId'))
    course = get_course_or_404(get_str(data, 'courseSlug'))

    enrollment = enroll(student, course, validity_from(data))
    db.session.commit()
    return jsonify(enrollment.to_dict()), 201


@admin_bp.route('/enrollments/<int:enrollment_id>', methods=['PATCH'])
@admin_required
def extend_enrollment(enrollment_id):
    """Extend validity, either to a date or by a number of months"""
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise NotFoundError('Enrollment not found')

    data = get_json_body()
    valid_until = get_datetime(data, 'validUntil', required=False)
    if valid_until is None:
        months = get_months(data, 'extendMonths')
        # Extending an expired enrollment counts from today
        valid_until = shift_months(max(enrollment.valid_until, utcnow()), months)

    enrollment.extend(valid_until)
    return jsonify({'message': 'Enrollment updated successfully', 'enrollment': enrollment.to_dict()})


# Teachers

@admin_bp.route('/teachers')
@admin_required
def list_teachers():
    teachers = User.query.filter_by(role='teacher').order_by(User.username).all()
    return jsonify([
        {**teacher.to_dict(), 'courses': TeacherAssignment.course_slugs_for(teacher.id)}
        for teacher in teachers
    ])


@admin_bp.route('/teachers', methods=['POST'])
@admin_required
def create_teacher():
    data = get_json_body()
    require_fields(data, 'email', 'password')
    email = get_str(data, 'email')
    username = get_str(data, 'username', required=False) or email.split('@')[0]
    user = auth_service.register(username, email, data['password'], 'teacher')
    logger.info(f"Admin created teacher {user.id}")
    return jsonify({'message': 'Teacher created successfully', 'teacher': user.to_dict()}), 201


def get_assignment_target(data):
    require_fields(data, 'teacherId', 'courseSlug')
    teacher = db.session.get(User, get_int(data, 'teacherId'))
    if not teacher or teacher.role != 'teacher':
        raise ValidationError('Invalid teacher ID')
    course = get_course_or_404(get_str(data, 'courseSlug'))
    return teacher, course


@admin_bp.route('/teacher-assignments')
@admin_required
def list_teacher_assignments():
    assignments = TeacherAssignment.query.order_by(TeacherAssignment.assigned_at.desc()).all()
    return jsonify([assignment.to_dict() for assignment in assignments])


@admin_bp.route('/teacher-assignments', methods=['POST'])
@admin_required
def assign_teacher():
    teacher, course = get_assignment_target(get_json_body())
    if TeacherAssignment.query.filter_by(teacher_id=teacher.id, course_slug=course.slug).first():
        raise ConflictError('Teacher is already assigned to this course')

    assignment = TeacherAssignment(teacher_id=teacher.id, course_slug=course.slug, assigned_by=current_user.id)
    db.session.add(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Teacher is already assigned to this course')

    logger.info(f"Assigned teacher {teacher.id} to {course.slug}")
    return jsonify(assignment.to_dict()), 201


@admin_bp.route('/teacher-assignments', methods=['DELETE'])
@admin_required
def unassign_teacher():
    teacher, course = get_assignment_target(get_json_body())
    assignment = TeacherAssignment.query.filter_by(teacher_id=teacher.id, course_slug=course.slug).first()
    if not assignment:
        raise NotFoundError('Assignment not found')

    db.session.delete(assignment)
    db.session.commit()
    logger.info(f"Removed teacher {teacher.id} from {course.slug}")
    return jsonify({'message': 'Teacher removed from course successfully'})


# Dashboard

@admin_bp.route('/dashboard')
@admin_required
def dashboard():
    return jsonify(dashboard_stats())


@admin_bp.route('/dashboard/trends')
@admin_required
def dashboard_trends():
    days = request.args.get('days', current_app.config['TREND_WINDOW_DAYS'], type=int)
    if not 1 <= days <= current_app.config['MAX_TREND_WINDOW_DAYS']:
        raise ValidationError(f"days must be between 1 and {current_app.config['MAX_TREND_WINDOW_DAYS']}")
    return jsonify(compute_trends(days))


@admin_bp.route('/logins')
@admin_required
def logins():
    limit = request.args.get('limit', 10, type=int)
    return jsonify(recent_logins(max(1, min(limit or 10, 100))))


# Live classes

@admin_bp.route('/live-classes')
@admin_required
def list_live_classes():
    query = LiveClass.query
    if request.args.get('course'):
        query = query.filter_by(course_slug=request.args['course'])
    return jsonify([live_class.to_dict() for live_class in query.order_by(LiveClass.start_time).all()])


@admin_bp.route('/live-classes', methods=['POST'])
@admin_required
def create_live_class():
    data = get_json_body()
    require_fields(data, 'courseSlug', 'title', 'meetLink', 'startTime', 'endTime')
    course = get_course_or_404(get_str(data, 'courseSlug'))
    start_time = get_datetime(data, 'startTime')
    end_time = get_datetime(data, 'endTime')
    if end_time <= start_time:
        raise ValidationError('endTime must be after startTime')

    live_class = LiveClass(
        course_slug=course.slug,
        title=get_str(data, 'title', max_length=255),
        description=get_str(data, 'description', required=False) or '',
        meet_link=get_str(data, 'meetLink', max_length=512),
        start_time=start_time,
        end_time=end_time,
    )
    db.session.add(live_class)
    db.session.commit()
    logger.info(f"Scheduled live class {live_class.id} for {course.slug}")
    return jsonify(live_class.to_dict()), 201


@admin_bp.route('/live-classes/<int:live_class_id>', methods=['PATCH'])
@admin_required
def update_live_class(live_class_id):
    live_class = db.session.get(LiveClass, live_class_id)
    if not live_class:
        raise NotFoundError('Live class not found')
    data = get_json_body()

    title = get_str(data, 'title', required=False, max_length=255)
    meet_link = get_str(data, 'meetLink', required=False, max_length=512)
    status = get_str(data, 'status', required=False)
    start_time = get_datetime(data, 'startTime', required=False)
    end_time = get_datetime(data, 'endTime', required=False)
    if title:
        live_class.title = title
    if 'description' in data:
        live_class.description = get_str(data, 'description', required=False) or ''
    if meet_link:
        live_class.meet_link = meet_link
    if start_time:
        live_class.start_time = start_time
    if end_time:
        live_class.end_time = end_time
    if status:
        check(validate_choice(status, LIVE_CLASS_STATUSES, 'status'))
        live_class.status = status
    if live_class.end_time <= live_class.start_time:
        raise ValidationError('endTime must be after startTime')

    db.session.commit()
    return jsonify(live_class.to_dict())


@admin_bp.route('/live-classes/<int:live_class_id>', methods=['DELETE'])
@admin_required
def delete_live_class(live_class_id):
    live_class = db.session.get(LiveClass, live_class_id)
    if not live_class:
        raise NotFoundError('Live class not found')
    db.session.delete(live_class)
    db.session.commit()
    return jsonify({'message': 'Live class deleted successfully'})
