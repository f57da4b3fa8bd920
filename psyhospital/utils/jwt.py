import datetime as dt
import uuid
import jwt
from flask import current_app

DEFAULT_EXP_MINUTES = 480  # one ward shift
# jti -> exp, pruned once exp has passed
_revoked: dict[str, int] = {}


class JWTError(Exception):
    pass


def _get_secret():
    secret = current_app.config.get('JWT_SECRET') or current_app.config.get('SECRET_KEY')
    if not secret:
        raise JWTError('JWT secret not configured (set JWT_SECRET or SECRET_KEY).')
    return secret


def _get_exp_minutes(overridden: int | None = None) -> int:
    if overridden is not None:
        return overridden
    configured = str(current_app.config.get('JWT_EXP_MINUTES') or '')
    if configured.isdigit():
        return int(configured)
    return DEFAULT_EXP_MINUTES


def create_access_token(user_id: int, role: str, full_name: str | None = None, expires_minutes: int | None = None):
    issued = dt.datetime.now(dt.timezone.utc)
    payload = {
        'sub': str(user_id),
        'role': role,
        'jti': uuid.uuid4().hex,
        'iat': int(issued.timestamp()),
        'exp': int((issued + dt.timedelta(minutes=_get_exp_minutes(expires_minutes))).timestamp()),
    }
    if full_name:
        payload['name'] = full_name
    return jwt.encode(payload, _get_secret(), algorithm='HS256')


def decode_token(token: str):
    try:
        payload = jwt.decode(token, _get_secret(), algorithms=['HS256'])
    except jwt.ExpiredSignatureError as e:
        raise JWTError('Token expired') from e
    except jwt.InvalidTokenError as e:
        raise JWTError('Invalid token') from e
    if payload.get('jti') in _revoked:
        raise JWTError('Token revoked')
    return payload


def prune_revoked(now: int | None = None):
    now = int(dt.datetime.now(dt.timezone.utc).timestamp()) if now is None else now
    for jti, exp in list(_revoked.items()):
        if exp <= now:
            del _revoked[jti]


def revoke_token(token: str):
    payload = decode_token(token)
    prune_revoked()
    _revoked[payload['jti']] = int(payload['exp'])
