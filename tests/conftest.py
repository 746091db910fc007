import pytest
from checkin import create_app
from checkin import db
from config import Config


class TestConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    TESTING = True
    SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'check_same_thread': False}}
    JWT_SECRET = 'test-secret-that-is-long-enough-for-hs256'
    BCRYPT_ROUNDS = 4


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'checkin.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'check_same_thread': False, 'timeout': 30}}

    app = create_app(FileConfig)
    yield app
    with app.app_context():
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return seed_user(username='admin', email='admin@example.com', role='admin')


@pytest.fixture
def admin_headers(client, admin):
    rv = client.post('/api/auth/login', json={'username': 'admin', 'password': 'secret-pass'})
    assert rv.status_code == 200
    return {'Authorization': f"Bearer {rv.get_json()['token']}"}


def athlete_payload(**overrides):
    payload = {
        'firstName': 'Jamie',
        'lastName': 'Rivera',
        'email': 'jamie@example.com',
        'phone': '555-0100',
        'dateOfBirth': '2008-04-12',
        'emergencyContact': 'Pat Rivera',
        'emergencyContactEmail': 'pat@example.com',
        'emergencyPhone': '555-0101',
        'hasValidWaiver': True,
        'waiverSignedDate': '2026-01-05',
        'waiverExpirationDate': '2027-01-05',
    }
    payload.update(overrides)
    return payload


def event_payload(**overrides):
    from checkin.util.time_util import local_today

    payload = {
        'name': 'Open Gym',
        'description': 'Drop-in practice',
        'date': local_today().isoformat(),
        'startTime': '00:00',
        'endTime': '23:59',
        'maxCapacity': 20,
        'createdBy': 'admin',
    }
    payload.update(overrides)
    return payload


def seed_athlete(**overrides):
    from checkin.queries import add_athlete
    return add_athlete(athlete_payload(**overrides))


def seed_event(**overrides):
    from checkin.queries import add_event
    return add_event(event_payload(**overrides))


def seed_user(password='secret-pass', **overrides):
    from checkin.queries import add_user
    payload = {
        'username': 'staff',
        'email': 'staff@example.com',
        'password': password,
        'role': 'staff',
        'firstName': 'Sam',
        'lastName': 'Staff',
    }
    payload.update(overrides)
    return add_user(payload)
