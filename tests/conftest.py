"""Shared fixtures."""
from datetime import datetime

import pytest

from planora import create_app, db
from planora.models.user import User, UserRole

# A Wednesday
NOW = datetime(2026, 3, 11, 10, 0)

@pytest.fixture
def now():
    return NOW

@pytest.fixture
def app():
    """Create test app with a fixed clock."""
    app = create_app('testing')
    app.config['CLOCK'] = lambda: NOW
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

def _make_user(email, role):
    user = User(email=email, name='Test ' + role.value.title(), role=role)
    user.set_password('password123')
    user.save()
    return user

@pytest.fixture
def student(app):
    return _make_user('student@example.com', UserRole.STUDENT)

@pytest.fixture
def teacher(app):
    return _make_user('teacher@example.com', UserRole.TEACHER)

def _login(client, email):
    response = client.post('/api/auth/login', json={'email': email, 'password': 'password123'})
    assert response.status_code == 200
    token = response.get_json()['data']['access_token']
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def student_headers(client, student):
    return _login(client, student.email)

@pytest.fixture
def teacher_headers(client, teacher):
    return _login(client, teacher.email)
