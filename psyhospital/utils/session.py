"""Explicit per-request user context.

Controllers build a :class:`UserSession` from the bearer token and hand it to
every operation that needs to know who is acting. Nothing here is stored at
module level.
"""
from dataclasses import dataclass

from flask import request

from psyhospital.utils.error_handler import AuthError, ForbiddenError
from psyhospital.utils.jwt import JWTError, decode_token

ROLE_DOCTOR = 'doctor'
ROLE_NURSE = 'nurse'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_DOCTOR, ROLE_NURSE, ROLE_ADMIN)


@dataclass(frozen=True)
class UserSession:
    user_id: int
    username: str
    full_name: str
    role: str
    token: str | None = None

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR

    @property
    def is_nurse(self) -> bool:
        return self.role == ROLE_NURSE

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def require(self, *roles: str, message: str | None = None):
        if self.role not in roles:
            raise ForbiddenError(message or f'Allowed roles: {", ".join(roles)}')
        return self

    @classmethod
    def for_user(cls, user, token: str | None = None):
        return cls(
            user_id=user.user_id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            token=token,
        )


def get_token_from_header():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1].strip() or None
    return None


def current_session() -> UserSession:
    """Resolve the acting user from the Authorization header."""
    from psyhospital.models.user import User

    token = get_token_from_header()
    if not token:
        raise AuthError('Missing Bearer token')

    try:
        payload = decode_token(token)
    except JWTError as e:
        raise AuthError(str(e)) from e

    role = payload.get('role')
    if role not in ROLES:
        raise AuthError('Invalid token role')

    sub = payload.get('sub')
    user = User.query.filter_by(user_id=int(sub)).first() if str(sub or '').isdigit() else None
    if not user:
        raise AuthError('User not found')
    if not user.is_active:
        raise AuthError('Account is deactivated')

    return UserSession.for_user(user, token=token)
