from flask import request

from psyhospital import db
from psyhospital.models.user import User
from psyhospital.utils.audit import record_audit
from psyhospital.utils.error_handler import handle_errors, AuthError, ValidationError
from psyhospital.utils.jwt import create_access_token, revoke_token
from psyhospital.utils.response import success_response
from psyhospital.utils.serializers import user_to_dict
from psyhospital.utils.session import UserSession, current_session
from psyhospital.utils.validation import validate_payload, LoginPayload


def authenticate(username: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None."""
    user = User.query.filter_by(username=username.strip(), is_active=True).first()
    if not user or not user.verify_password(password):
        return None
    if user.has_legacy_hash:
        # first login after migration from the desktop system
        user.set_password(password)
    user.mark_login()
    return user


@handle_errors('Login failed')
def login():
    data = validate_payload(LoginPayload, request.get_json() or {})
    if not data['username'].strip() or not data['password']:
        raise ValidationError('username and password are required')

    user = authenticate(data['username'], data['password'])
    if not user:
        raise AuthError('invalid credentials')

    session = UserSession.for_user(user)
    record_audit(session, 'LOGIN', 'User', user.user_id, f'Login: {user.username}')
    db.session.commit()

    token = create_access_token(user.user_id, user.role, user.full_name)
    return success_response(
        data={'token': token, 'role': user.role, 'user': user_to_dict(user)},
        message='Login successful',
        status_code=200,
    )


@handle_errors('Logout failed')
def logout():
    session = current_session()
    revoke_token(session.token)
    return success_response(message='Logged out', status_code=200)


@handle_errors('Fetch profile failed')
def me():
    session = current_session()
    user = db.session.get(User, session.user_id)
    return success_response(data=user_to_dict(user), message='Profile fetched', status_code=200)
