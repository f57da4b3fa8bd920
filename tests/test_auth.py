import hashlib

from psyhospital import db
from psyhospital.models.audit_log import AuditLog
from psyhospital.models.user import User
from psyhospital.utils.jwt import _revoked, create_access_token, decode_token, prune_revoked, revoke_token


def _login(client, username, password):
    return client.post('/auth/login', json={'username': username, 'password': password})


def test_login_returns_token(app, client, password):
    resp = _login(client, 'doctor', password)
    assert resp.status_code == 200
    body = resp.get_json()['data']
    assert body['role'] == 'doctor'
    assert body['user']['role_display'] == 'Doctor'
    assert body['user']['last_login'] is not None

    me = client.get('/auth/me', headers={'Authorization': f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()['data']['username'] == 'doctor'

    with app.app_context():
        assert db.session.execute(db.select(AuditLog).filter_by(action='LOGIN')).scalar_one().entity_id == body['user']['user_id']


def test_wrong_password(client):
    resp = _login(client, 'doctor', 'not-the-password')
    assert resp.status_code == 401
    assert resp.get_json()['error']['code'] == 'AUTH_ERROR'


def test_inactive_user_cannot_log_in(client, password):
    assert _login(client, 'retired', password).status_code == 401


def test_inactive_user_token_is_refused(client, headers):
    resp = client.get('/auth/me', headers=headers['retired'])
    assert resp.status_code == 401


def test_legacy_hash_is_upgraded(app, client):
    with app.app_context():
        user = User.query.filter_by(username='nurse').one()
        user.password_hash = hashlib.sha256(b'old-desktop-pass').hexdigest().upper()
        db.session.commit()

    assert _login(client, 'nurse', 'old-desktop-pass').status_code == 200

    with app.app_context():
        user = User.query.filter_by(username='nurse').one()
        assert user.password_hash.startswith('$2')
        assert user.verify_password('old-desktop-pass')


def test_logout_revokes_token(client, headers):
    assert client.post('/auth/logout', headers=headers['doctor']).status_code == 200
    assert client.get('/auth/me', headers=headers['doctor']).status_code == 401
    assert client.get('/auth/me', headers=headers['nurse']).status_code == 200


def test_missing_or_malformed_token(client):
    assert client.get('/auth/me').status_code == 401
    assert client.get('/auth/me', headers={'Authorization': 'Token abc'}).status_code == 401
    assert client.get('/auth/me', headers={'Authorization': 'Bearer not.a.jwt'}).status_code == 401


def test_login_payload_is_validated(client):
    resp = client.post('/auth/login', json={'username': 'doctor'})
    assert resp.status_code == 422
    assert resp.get_json()['error']['details']['errors'][0]['loc'] == ['password']


def test_revoked_tokens_are_pruned_after_expiry(app):
    with app.app_context():
        token = create_access_token(1, 'doctor', expires_minutes=5)
        payload = decode_token(token)
        revoke_token(token)
        assert payload['jti'] in _revoked

        prune_revoked(now=payload['exp'] - 1)
        assert payload['jti'] in _revoked

        prune_revoked(now=payload['exp'])
        assert payload['jti'] not in _revoked
