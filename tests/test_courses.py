import pytest

from lms_portal.models import LiveClass

from .conftest import CHRM_MODULES


def new_course(**overrides):
    payload = {
        'slug': 'shrm',
        'title': 'Strategic HR Management',
        'type': 'with-mba',
        'description': 'Strategy for people leaders',
        'liveClassConfig': {'enabled': True, 'frequency': 'biweekly', 'dayOfWeek': 'Friday', 'durationMin': 90},
        'modules': CHRM_MODULES,
    }
    payload.update(overrides)
    return payload


def test_create_course(admin_client):
    response = admin_client.post('/courses/', json=new_course())

    assert response.status_code == 201
    course = response.get_json()['course']
    assert course['slug'] == 'shrm'
    assert course['type'] == 'with-mba'
    assert course['live_class_config'] == {
        'enabled': True, 'frequency': 'biweekly', 'day_of_week': 'Friday', 'duration_min': 90
    }
    assert [module['index'] for module in course['modules']] == [0, 1, 2]
    assert course['modules'][0]['quiz_id'] == 'quiz-0'
    assert course['modules'][0]['videos'][0]['title'] == 'Welcome'


def test_create_course_duplicate_slug(admin_client, course):
    response = admin_client.post('/courses/', json=new_course(slug=course))

    assert response.status_code == 409


def test_create_course_validates_input(admin_client):
    assert admin_client.post('/courses/', json=new_course(slug='Bad Slug')).status_code == 400
    assert admin_client.post('/courses/', json=new_course(type='bootcamp')).status_code == 400
    assert admin_client.post('/courses/', json=new_course(modules=[{'videos': []}])).status_code == 400
    assert admin_client.post('/courses/', json={'slug': 'x'}).status_code == 400


def test_course_detail(student_client, course):
    response = student_client.get(f'/courses/{course}')

    assert response.status_code == 200
    assert len(response.get_json()['modules']) == 3


def test_unknown_course(student_client):
    response = student_client.get('/courses/missing')

    assert response.status_code == 404
    assert response.get_json() == {'message': 'Course not found'}


def test_update_course_modules(admin_client, course):
    response = admin_client.put(f'/courses/{course}', json={
        'title': 'Certified HR Manager (2026)',
        'modules': CHRM_MODULES[:2],
    })

    assert response.status_code == 200
    updated = response.get_json()['course']
    assert updated['title'] == 'Certified HR Manager (2026)'
    assert len(updated['modules']) == 2


def test_removed_modules_cannot_be_completed(admin_client, student_client, enrollment, course):
    admin_client.put(f'/courses/{course}', json={'modules': CHRM_MODULES[:1]})

    response = student_client.post('/enrollments/complete', json={'moduleIndex': 2})

    assert response.status_code == 400


def test_delete_course(app, admin_client, course):
    response = admin_client.delete(f'/courses/{course}')

    assert response.status_code == 200
    assert admin_client.get(f'/courses/{course}').status_code == 404


def test_course_with_enrollments_cannot_be_deleted(admin_client, enrollment, course):
    response = admin_client.delete(f'/courses/{course}')

    assert response.status_code == 409


@pytest.mark.parametrize('overrides', [
    {'title': ['Strategic HR']},
    {'slug': {'value': 'shrm'}},
    {'modules': [{'title': 'Intro', 'quizId': 7}]},
    {'modules': [{'title': 'Intro', 'videos': [{'title': 'A', 'url': ['x']}]}]},
    {'modules': [{'title': 'Intro', 'videos': [{'title': 'A', 'url': 'x', 'duration': '5m'}]}]},
    {'liveClassConfig': {'frequency': ['weekly']}},
])
def test_create_course_rejects_wrongly_typed_values(admin_client, overrides):
    response = admin_client.post('/courses/', json=new_course(**overrides))

    assert response.status_code == 400


def live_class(**overrides):
    payload = {
        'courseSlug': 'chrm',
        'title': 'Office hours',
        'meetLink': 'https://meet.example.com/abc',
        'startTime': '2099-01-05T10:00:00Z',
        'endTime': '2099-01-05T11:00:00Z',
    }
    payload.update(overrides)
    return payload


def test_schedule_live_class(admin_client, course):
    response = admin_client.post('/admin/live-classes', json=live_class())

    assert response.status_code == 201
    assert response.get_json()['title'] == 'Office hours'


@pytest.mark.parametrize('overrides', [
    {'title': ['Office hours']},
    {'meetLink': {'url': 'https://meet.example.com/abc'}},
    {'courseSlug': ['chrm']},
    {'endTime': '2099-01-05T09:00:00Z'},
])
def test_schedule_live_class_rejects_invalid_values(app, admin_client, course, overrides):
    response = admin_client.post('/admin/live-classes', json=live_class(**overrides))

    assert response.status_code == 400
    with app.app_context():
        assert LiveClass.query.count() == 0
