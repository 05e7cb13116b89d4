import pytest

from lms_portal.models import Recording

from .conftest import create_user, login
from .test_enrollments import expire

DRIVE_LINK = 'https://drive.google.com/file/d/abc123/view'


def new_recording(**overrides):
    payload = {
        'courseSlug': 'chrm',
        'moduleIndex': 1,
        'classDate': '2026-03-02T10:00:00Z',
        'title': 'Recruitment Q&A',
        'fileUrl': DRIVE_LINK,
    }
    payload.update(overrides)
    return payload


def add_recording(admin_client, **overrides):
    response = admin_client.post('/recordings/', json=new_recording(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_create_recording(admin_client, admin, course):
    recording = add_recording(admin_client, description='Answers from week two')

    assert recording['course_slug'] == course
    assert recording['module_index'] == 1
    assert recording['class_date'] == '2026-03-02T10:00:00'
    assert recording['uploaded_by'] == admin['id']
    assert recording['is_visible'] is True
    assert recording['description'] == 'Answers from week two'


def test_recording_module_defaults_to_first(admin_client, course):
    assert add_recording(admin_client, moduleIndex=None)['module_index'] == 0


@pytest.mark.parametrize('overrides', [
    {'fileUrl': 'https://videos.example.com/recording.mp4'},
    {'fileUrl': ['https://drive.google.com/x']},
    {'moduleIndex': 3},
    {'classDate': 'last monday'},
    {'title': ''},
    {'isVisible': 'sometimes'},
])
def test_create_recording_validates_input(app, admin_client, course, overrides):
    response = admin_client.post('/recordings/', json=new_recording(**overrides))

    assert response.status_code == 400
    with app.app_context():
        assert Recording.query.count() == 0


def test_create_recording_for_unknown_course(admin_client, course):
    response = admin_client.post('/recordings/', json=new_recording(courseSlug='nope'))

    assert response.status_code == 404


def test_admin_lists_recordings(admin_client, course):
    first = add_recording(admin_client, moduleIndex=2)
    second = add_recording(admin_client, moduleIndex=0, isVisible=False)

    everything = admin_client.get('/recordings/').get_json()
    by_course = admin_client.get(f'/recordings/course/{course}').get_json()

    assert [item['id'] for item in everything] == [second['id'], first['id']]
    assert [item['id'] for item in by_course] == [second['id'], first['id']]


def test_update_recording(admin_client, course):
    recording = add_recording(admin_client)

    response = admin_client.put(f"/recordings/{recording['id']}", json={'title': 'Renamed', 'isVisible': False})

    assert response.status_code == 200
    assert response.get_json()['title'] == 'Renamed'
    assert response.get_json()['is_visible'] is False
    bad_link = admin_client.put(f"/recordings/{recording['id']}", json={'fileUrl': 'https://example.com/x'})
    assert bad_link.status_code == 400


def test_delete_recording(app, admin_client, course):
    recording = add_recording(admin_client)

    assert admin_client.delete(f"/recordings/{recording['id']}").status_code == 200
    assert admin_client.delete(f"/recordings/{recording['id']}").status_code == 404
    with app.app_context():
        assert Recording.query.count() == 0


def test_students_cannot_manage_recordings(student_client, course):
    assert student_client.get('/recordings/').status_code == 403
    assert student_client.post('/recordings/', json=new_recording()).status_code == 403


def test_student_sees_visible_recordings_of_active_courses(admin_client, student_client, enrollment, course):
    shown = add_recording(admin_client)
    hidden = add_recording(admin_client, isVisible=False)

    listed = student_client.get('/student/recordings').get_json()
    for_course = student_client.get(f'/student/recordings/course/{course}').get_json()

    assert [item['id'] for item in listed] == [shown['id']]
    assert [item['id'] for item in for_course] == [shown['id']]
    assert student_client.get(f"/recordings/{shown['id']}").status_code == 200
    assert student_client.get(f"/recordings/{hidden['id']}").status_code == 403


def test_student_without_enrollment_cannot_see_recordings(admin_client, student_client, course):
    recording = add_recording(admin_client)

    assert student_client.get('/student/recordings').get_json() == []
    response = student_client.get(f'/student/recordings/course/{course}')
    assert response.status_code == 403
    assert response.get_json() == {'message': 'Not enrolled in this course'}
    assert student_client.get(f"/recordings/{recording['id']}").status_code == 403


def test_expired_enrollment_hides_recordings(app, admin_client, student_client, enrollment, course):
    recording = add_recording(admin_client)
    expire(app, enrollment['id'])

    assert student_client.get('/student/recordings').get_json() == []
    assert student_client.get(f'/student/recordings/course/{course}').status_code == 409
    assert student_client.get(f"/recordings/{recording['id']}").status_code == 403


def test_recording_detail_for_teachers(app, admin_client, course):
    recording = add_recording(admin_client)
    teacher = create_user(app, 'tina', 'tina@example.com', 'teach-pass', 'teacher')
    client = app.test_client()
    login(client, teacher['email'], teacher['password'])

    assert client.get(f"/recordings/{recording['id']}").status_code == 403
    admin_client.post('/admin/teacher-assignments', json={'teacherId': teacher['id'], 'courseSlug': course})
    assert client.get(f"/recordings/{recording['id']}").status_code == 200
