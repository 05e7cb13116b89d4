from flask import Blueprint, jsonify
from flask_login import current_user
import logging
from ..models.enrollment import Enrollment
from ..models.recording import Recording
from ..models.teacher import TeacherAssignment
from ..errors import Forbidden, NotFoundError, ValidationError
from ..utils.decorators import login_required, admin_required
from ..utils.validators import (
    get_json_body, require_fields, get_int, get_str, get_bool, get_datetime
)
from .courses import get_course_or_404
from .. import db

logger = logging.getLogger(__name__)

recordings_bp = Blueprint('recordings', __name__)

# Recordings are shared as Google Drive links
RECORDING_LINK_HOST = 'drive.google.com'


def get_recording_or_404(recording_id):
    recording = db.session.get(Recording, recording_id)
    if not recording:
        raise NotFoundError('Recording not found')
    return recording


def validate_file_url(file_url):
    if RECORDING_LINK_HOST not in file_url:
        raise ValidationError('Please provide a valid Google Drive link')
    return file_url


def validate_module_index(course, module_index):
    """Recordings of a course without modules file under index 0"""
    if module_index is None:
        return 0
    if course.has_module(module_index) or (module_index == 0 and not course.module_count):
        return module_index
    raise ValidationError(f'moduleIndex {module_index} is out of range for {course.slug}')


def can_view(user, recording):
    if user.role == 'admin':
        return True
    if user.role == 'teacher':
        return recording.is_visible and recording.course_slug in TeacherAssignment.course_slugs_for(user.id)
    student = user.student
    if student is None or not recording.is_visible:
        return False
    enrollment = Enrollment.find(student.id, recording.course_slug)
    return enrollment is not None and not enrollment.is_expired()


@recordings_bp.route('/')
@admin_required
def index():
    """Get all recordings, newest first"""
    recordings = Recording.query.order_by(Recording.uploaded_at.desc(), Recording.id.desc()).all()
    return jsonify([recording.to_dict() for recording in recordings])


@recordings_bp.route('/course/<slug>')
@admin_required
def by_course(slug):
    get_course_or_404(slug)
    recordings = (
        Recording.query.filter_by(course_slug=slug)
        .order_by(Recording.module_index, Recording.class_date)
        .all()
    )
    return jsonify([recording.to_dict() for recording in recordings])


@recordings_bp.route('/<int:recording_id>')
@login_required
def detail(recording_id):
    recording = get_recording_or_404(recording_id)
    if not can_view(current_user, recording):
        raise Forbidden('Access denied')
    return jsonify(recording.to_dict())


@recordings_bp.route('/', methods=['POST'])
@admin_required
def create():
    data = get_json_body()
    require_fields(data, 'courseSlug', 'classDate', 'title', 'fileUrl')
    course = get_course_or_404(get_str(data, 'courseSlug'))

    recording = Recording(
        course_slug=course.slug,
        module_index=validate_module_index(course, get_int(data, 'moduleIndex', required=False)),
        class_date=get_datetime(data, 'classDate'),
        title=get_str(data, 'title', max_length=255),
        description=get_str(data, 'description', required=False) or '',
        file_url=validate_file_url(get_str(data, 'fileUrl', max_length=512)),
        uploaded_by=current_user.id,
        is_visible=get_bool(data, 'isVisible', default=True),
    )
    db.session.add(recording)
    db.session.commit()
    logger.info(f"Added recording {recording.id} to {course.slug}")
    return jsonify(recording.to_dict()), 201


@recordings_bp.route('/<int:recording_id>', methods=['PUT'])
@admin_required
def update(recording_id):
    recording = get_recording_or_404(recording_id)
    data = get_json_body()

    title = get_str(data, 'title', required=False, max_length=255)
    file_url = get_str(data, 'fileUrl', required=False, max_length=512)
    class_date = get_datetime(data, 'classDate', required=False)
    module_index = get_int(data, 'moduleIndex', required=False)
    if title:
        recording.title = title
    if 'description' in data:
        recording.description = get_str(data, 'description', required=False) or ''
    if file_url:
        recording.file_url = validate_file_url(file_url)
    if class_date:
        recording.class_date = class_date
    if module_index is not None:
        recording.module_index = validate_module_index(get_course_or_404(recording.course_slug), module_index)
    recording.is_visible = get_bool(data, 'isVisible', default=recording.is_visible)

    db.session.commit()
    return jsonify(recording.to_dict())


@recordings_bp.route('/<int:recording_id>', methods=['DELETE'])
@admin_required
def delete(recording_id):
    recording = get_recording_or_404(recording_id)
    db.session.delete(recording)
    db.session.commit()
    return jsonify({'message': 'Recording deleted successfully'})
