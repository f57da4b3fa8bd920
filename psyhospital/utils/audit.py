from flask import current_app

from psyhospital import db
from psyhospital.models.audit_log import AuditLog


def record_audit(session, action: str, entity_type: str, entity_id: int | None = None,
                 details: str | None = None):
    """Queue an audit row in the caller's transaction.

    Nothing is committed here; the row is written together with the change it
    describes, or not at all.
    """
    entry = AuditLog(
        user_id=session.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.session.add(entry)
    current_app.logger.info('%s %s:%s by %s', action, entity_type, entity_id, session.username)
    return entry
