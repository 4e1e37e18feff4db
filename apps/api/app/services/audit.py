import json
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.models.audit_log import AuditLog

logger = logging.getLogger("audit")

MONITOR_ACTOR = "drawdown_monitor"
API_ACTOR = "api"


def _jsonable(details: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not details:
        return None
    # datetimes and enums end up as strings
    return json.loads(json.dumps(details, default=str))


def log_audit_event(
    db: Session,
    action: str,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    actor: str = MONITOR_ACTOR,
) -> AuditLog:
    """Stage an audit row in the caller's transaction. The caller commits."""
    event = AuditLog(
        actor=actor,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=_jsonable(details),
    )
    db.add(event)
    db.flush()
    logger.debug("audit %s %s/%s by %s", action, entity_type, entity_id, actor)
    return event


def list_audit_events(
    db: Session,
    *,
    limit: int = 100,
    action: Optional[str] = None,
    entity_id: Optional[str] = None,
) -> list[AuditLog]:
    stmt = select(AuditLog)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if entity_id:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    stmt = stmt.order_by(AuditLog.created_at.desc()).limit(max(1, min(limit, 1000)))
    return db.execute(stmt).scalars().all()
