from functools import wraps
from flask import current_app
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from psyhospital import db
from psyhospital.utils.response import error_response


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 400, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}


class ValidationError(AppError):
    def __init__(self, message: str = 'Validation failed', details: dict | None = None):
        super().__init__(message=message, status_code=400, code='VALIDATION_ERROR', details=details)


class AuthError(AppError):
    def __init__(self, message: str = 'Unauthorized', details: dict | None = None):
        super().__init__(message=message, status_code=401, code='AUTH_ERROR', details=details)


class ForbiddenError(AppError):
    def __init__(self, message: str = 'Insufficient permissions', details: dict | None = None):
        super().__init__(message=message, status_code=403, code='FORBIDDEN', details=details)


class NotFoundError(AppError):
    def __init__(self, message: str = 'Resource not found', details: dict | None = None):
        super().__init__(message=message, status_code=404, code='NOT_FOUND', details=details)


class ConflictError(AppError):
    """Operation is not valid for the current state of the entity."""

    def __init__(self, message: str = 'Operation not allowed in current state', details: dict | None = None):
        super().__init__(message=message, status_code=409, code='STATE_CONFLICT', details=details)


class PersistenceError(AppError):
    def __init__(self, message: str = 'Database error', details: dict | None = None):
        super().__init__(message=message, status_code=503, code='PERSISTENCE_ERROR', details=details)


def handle_errors(message: str = 'Internal server error', status_code: int = 500):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AppError as err:
                db.session.rollback()
                return error_response(
                    message=err.message,
                    status_code=err.status_code,
                    code=err.code,
                    details=err.details or None,
                )
            except PydanticValidationError as err:
                db.session.rollback()
                return error_response(
                    message=f'{message}: invalid payload',
                    status_code=422,
                    code='VALIDATION_ERROR',
                    details={'errors': err.errors(include_url=False, include_context=False, include_input=False)},
                )
            except SQLAlchemyError:
                db.session.rollback()
                current_app.logger.exception('Database failure in %s', func.__name__)
                err = PersistenceError(f'{message}: database error')
                return error_response(message=err.message, status_code=err.status_code, code=err.code)
            except Exception:
                db.session.rollback()
                current_app.logger.exception('Unhandled exception in %s', func.__name__)
                return error_response(
                    message=message,
                    status_code=status_code,
                    code='INTERNAL_SERVER_ERROR',
                )

        return wrapper

    return decorator
