import json
import logging

from flask import request, has_request_context
from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)

def log_event(action: str, actor=None, entity=None, entity_id=None, metadata=None, session=None):
    """Append an audit row and commit it. Call only after the unit of work it describes has committed."""
    session = session or db.session
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        actor=str(actor) if actor is not None else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    session.add(row)
    session.commit()
    logger.debug("audit action=%s entity=%s entity_id=%s", action, entity, entity_id)
