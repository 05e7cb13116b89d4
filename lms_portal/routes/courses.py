from flask import Blueprint, jsonify
import logging
import re
from ..models.course import Course, COURSE_TYPES, LIVE_CLASS_FREQUENCIES
from ..models.enrollment import Enrollment
from ..models.liveclass import LiveClass
from ..models.recording import Recording
from ..models.teacher import TeacherAssignment
from ..errors import ConflictError, NotFoundError, ValidationError
from ..utils.decorators import login_required, admin_required
from ..utils.validators import get_json_body, require_fields, get_str, check, validate_choice
from .. import db

logger = logging.getLogger(__name__)

courses_bp = Blueprint('courses', __name__)

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def get_course_or_404(slug):
    course = Course.query.filter_by(slug=slug).first()
    if not course:
        raise NotFoundError('Course not found')
    return course


def _is_text(value):
    return isinstance(value, str) and bool(value.strip())


def _validate_links(items, field, module_number):
    if not isinstance(items, list):
        raise ValidationError(f'Module {module_number}: {field} must be a list')
    for item in items:
        if not isinstance(item, dict) or not _is_text(item.get('title')) or not _is_text(item.get('url')):
            raise ValidationError(f'Module {module_number}: every entry in {field} needs a title and url')


def validate_modules(modules):
    if not isinstance(modules, list):
        raise ValidationError('modules must be a list')
    for number, module in enumerate(modules):
        if not isinstance(module, dict) or not _is_text(module.get('title')):
            raise ValidationError(f'Module {number}: title is required')
        if module.get('quizId') is not None and not isinstance(module['quizId'], str):
            raise ValidationError(f'Module {number}: quizId must be a string')
        _validate_links(module.get('videos') or [], 'videos', number)
        _validate_links(module.get('documents') or [], 'documents', number)
        for video in module.get('videos') or []:
            duration = video.get('duration', 0)
            if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
                raise ValidationError(f'Module {number}: video duration must be a non-negative number')
            if video.get('videoId') is not None and not isinstance(video['videoId'], str):
                raise ValidationError(f'Module {number}: videoId must be a string')
    return modules


def validate_live_class_config(config):
    if not isinstance(config, dict):
        raise ValidationError('liveClassConfig must be an object')
    for key in ('frequency', 'dayOfWeek'):
        if key in config and not isinstance(config[key], str):
            raise ValidationError(f'liveClassConfig.{key} must be a string')
    if 'frequency' in config:
        check(validate_choice(config['frequency'], LIVE_CLASS_FREQUENCIES, 'liveClassConfig.frequency'))
    duration = config.get('durationMin')
    if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0):
        raise ValidationError('liveClassConfig.durationMin must be a positive integer')
    return config


@courses_bp.route('/')
@login_required
def index():
    """List all available courses"""
    courses = Course.query.order_by(Course.title).all()
    return jsonify([course.to_dict() for course in courses])


@courses_bp.route('/<slug>')
@login_required
def detail(slug):
    return jsonify(get_course_or_404(slug).to_dict())


@courses_bp.route('/', methods=['POST'])
@admin_required
def create():
    data = get_json_body()
    require_fields(data, 'slug', 'title', 'type')

    slug = get_str(data, 'slug').lower()
    if not SLUG_PATTERN.match(slug):
        raise ValidationError('slug may only contain lowercase letters, digits and hyphens')
    title = get_str(data, 'title', max_length=255)
    course_type = get_str(data, 'type')
    check(validate_choice(course_type, COURSE_TYPES, 'type'))

    # Check if course with this slug already exists
    if Course.query.filter_by(slug=slug).first():
        raise ConflictError('Course with this slug already exists')

    course = Course(
        slug=slug,
        title=title,
        type=course_type,
        description=get_str(data, 'description', required=False) or '',
    )
    if data.get('liveClassConfig') is not None:
        course.set_live_class_config(validate_live_class_config(data['liveClassConfig']))
    course.set_modules(validate_modules(data.get('modules') or []))

    db.session.add(course)
    db.session.commit()
    logger.info(f"Created course {slug} with {course.module_count} modules")
    return jsonify({'message': 'Course created successfully', 'course': course.to_dict()}), 201


@courses_bp.route('/<slug>', methods=['PUT'])
@admin_required
def update(slug):
    course = get_course_or_404(slug)
    data = get_json_body()

    # Update fields
    title = get_str(data, 'title', required=False, max_length=255)
    course_type = get_str(data, 'type', required=False)
    if title:
        course.title = title
    if course_type:
        check(validate_choice(course_type, COURSE_TYPES, 'type'))
        course.type = course_type
    if 'description' in data:
        course.description = get_str(data, 'description', required=False) or ''
    if data.get('liveClassConfig') is not None:
        course.set_live_class_config(validate_live_class_config(data['liveClassConfig']))
    if data.get('modules') is not None:
        course.set_modules(validate_modules(data['modules']))

    db.session.commit()
    logger.info(f"Updated course {slug}")
    return jsonify({'message': 'Course updated successfully', 'course': course.to_dict()})


@courses_bp.route('/<slug>', methods=['DELETE'])
@admin_required
def delete(slug):
    course = get_course_or_404(slug)
    # Enrollments are never deleted, so a course that has any must stay
    if Enrollment.query.filter_by(course_slug=slug).first():
        raise ConflictError('Course has enrollments and cannot be deleted')

    LiveClass.query.filter_by(course_slug=slug).delete()
    Recording.query.filter_by(course_slug=slug).delete()
    TeacherAssignment.query.filter_by(course_slug=slug).delete()
    db.session.delete(course)
    db.session.commit()
    logger.info(f"Deleted course {slug}")
    return jsonify({'message': 'Course deleted successfully'})
