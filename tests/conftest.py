import pytest

from lms_portal import create_app, db
from lms_portal.config import TestConfig
from lms_portal.models import Course, Student, User

ADMIN = {'username': 'admin', 'email': 'admin@example.com', 'password': 'admin-pass', 'role': 'admin'}
STUDENT = {'username': 'alice', 'email': 'alice@example.com', 'password': 'pw123', 'role': 'student'}
OTHER_STUDENT = {'username': 'bob', 'email': 'bob@example.com', 'password': 'pw456', 'role': 'student'}

CHRM_MODULES = [
    {
        'title': 'Foundations of HR',
        'videos': [{'title': 'Welcome', 'url': 'https://videos.example.com/1', 'duration': 300}],
        'documents': [{'title': 'Syllabus', 'url': 'https://docs.example.com/syllabus.pdf'}],
        'quizId': 'quiz-0',
    },
    {'title': 'Recruitment', 'videos': [], 'documents': [], 'quizId': 'quiz-1'},
    {'title': 'Compensation', 'videos': [], 'documents': []},
]


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


def create_user(app, username, email, password, role, name=None):
    with app.app_context():
        user = User(username=username, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        student_id = None
        if role == 'student':
            student = Student(user=user, name=name or username.title())
            db.session.add(student)
            db.session.flush()
            student_id = student.id
        db.session.commit()
        return {'id': user.id, 'student_id': student_id, 'email': email, 'password': password}


def login(client, email, password):
    response = client.post('/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture
def admin(app):
    return create_user(app, **ADMIN)


@pytest.fixture
def student(app):
    return create_user(app, **STUDENT)


@pytest.fixture
def other_student(app):
    return create_user(app, **OTHER_STUDENT)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app, admin):
    client = app.test_client()
    login(client, admin['email'], admin['password'])
    return client


@pytest.fixture
def student_client(app, student):
    client = app.test_client()
    login(client, student['email'], student['password'])
    return client


@pytest.fixture
def course(app):
    with app.app_context():
        course = Course(slug='chrm', title='Certified HR Manager', type='standalone')
        course.set_modules(CHRM_MODULES)
        db.session.add(course)
        db.session.commit()
        return course.slug


@pytest.fixture
def enrollment(admin_client, student, course):
    response = admin_client.post('/admin/enrollments', json={
        'studentId': student['student_id'],
        'courseSlug': course,
        'validMonths': 1,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()
