from flask import request

from psyhospital.models.audit_log import AuditLog
from psyhospital.utils.error_handler import handle_errors, ValidationError
from psyhospital.utils.response import list_response
from psyhospital.utils.serializers import audit_to_dict
from psyhospital.utils.session import ROLE_ADMIN, current_session

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def _int_arg(name: str, default: int | None = None) -> int | None:
    raw = (request.args.get(name) or '').strip()
    if not raw:
        return default
    if not raw.isdigit():
        raise ValidationError(f'{name} must be a positive integer', details={'fields': [name]})
    return int(raw)


@handle_errors('Fetch audit log failed')
def list_audit_entries():
    current_session().require(ROLE_ADMIN, message='Only administrators can view the audit log')

    user_id = _int_arg('user_id')
    limit = min(_int_arg('limit', DEFAULT_LIMIT) or DEFAULT_LIMIT, MAX_LIMIT)
    action = (request.args.get('action') or '').strip().upper()
    entity_type = (request.args.get('entity_type') or '').strip()

    query = AuditLog.query
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)

    entries = query.order_by(AuditLog.created_at.desc(), AuditLog.log_id.desc()).limit(limit).all()
    return list_response([audit_to_dict(e) for e in entries], message='Audit log fetched')
