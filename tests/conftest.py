import bcrypt
import pytest

from psyhospital import create_app, db
from psyhospital.models.user import User
from psyhospital.models.ward import Ward
from psyhospital.utils.jwt import create_access_token
from psyhospital.utils.schedule import FREQUENCY_TWICE

PASSWORD = 'ward-shift-2024'
# few rounds keep the suite fast, verification does not care about the cost
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode('utf-8'), bcrypt.gensalt(rounds=4)).decode('utf-8')

USERS = (
    ('doctor', 'Ivanov Ivan', 'doctor', True),
    ('nurse', 'Sidorova Anna', 'nurse', True),
    ('admin', 'Petrova Olga', 'admin', True),
    ('doctor2', 'Smirnov Pavel', 'doctor', True),
    ('retired', 'Kuznetsov Oleg', 'nurse', False),
)

WARDS = (
    ('101', 'General', 4),
    ('102', 'General', 1),
    ('201', 'Acute', 2),
)


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'RATELIMIT_ENABLED': False,
        'SECRET_KEY': 'test-secret-key',
        'JWT_SECRET': 'test-jwt-secret',
    })

    with app.app_context():
        db.create_all()
        for username, full_name, role, is_active in USERS:
            db.session.add(User(
                username=username,
                full_name=full_name,
                role=role,
                is_active=is_active,
                password_hash=PASSWORD_HASH,
            ))
        for number, department, beds in WARDS:
            db.session.add(Ward(ward_number=number, department=department, total_beds=beds, occupied_beds=0))
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(app):
    with app.app_context():
        return {u.username: u.user_id for u in User.query.all()}


@pytest.fixture
def wards(app):
    with app.app_context():
        return {w.ward_number: w.ward_id for w in Ward.query.all()}


@pytest.fixture
def headers(app):
    result = {}
    with app.app_context():
        for user in User.query.all():
            token = create_access_token(user.user_id, user.role, user.full_name)
            result[user.username] = {'Authorization': f'Bearer {token}'}
    return result


@pytest.fixture
def admit(client, headers):
    def _admit(full_name='Petrov Petr', ward_id=None, **fields):
        payload = {'full_name': full_name, 'birth_date': '1980-05-17', **fields}
        if ward_id is not None:
            payload['ward_id'] = ward_id
        resp = client.post('/patients', json=payload, headers=headers['doctor'])
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()['data']

    return _admit


@pytest.fixture
def prescribe(client, headers, admit):
    def _prescribe(patient_id=None, **fields):
        if patient_id is None:
            patient_id = admit()['patient_id']
        payload = {
            'patient_id': patient_id,
            'prescription_type': 'Medication',
            'name': 'Haloperidol',
            'dosage': '5 mg',
            'frequency': FREQUENCY_TWICE,
            'duration': 7,
            **fields,
        }
        resp = client.post('/prescriptions', json=payload, headers=headers['doctor'])
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()['data']

    return _prescribe

