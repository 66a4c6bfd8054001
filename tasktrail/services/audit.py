"""Audit trail of task mutations.

``record`` is what the task service calls after each committed mutation. The
remaining functions back the administrative ``/audit`` routes; changing or
removing entries is refused unless ``AUDIT_LOG_MUTABLE`` is switched on.
"""
import logging
from typing import Optional, Any, Dict, List

from sqlalchemy.orm import Session

from tasktrail import config
from tasktrail.exceptions import NotFound, MethodNotAllowed
from tasktrail.models.audit import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    user_id: str,
    action: str,
    task_id: int,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(user_id=user_id, action=action, task_id=task_id, details=details)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Audit %s on task %s by user %s", action, task_id, user_id)
    return entry


def list_entries(
    db: Session, task_id: Optional[int] = None, action: Optional[str] = None
) -> List[AuditLog]:
    query = db.query(AuditLog)
    if task_id is not None:
        query = query.filter(AuditLog.task_id == task_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).all()


def get_entry(db: Session, entry_id: int) -> AuditLog:
    entry = db.get(AuditLog, entry_id)
    if entry is None:
        raise NotFound(f"Audit entry #{entry_id} not found")
    return entry


def _ensure_mutable():
    if not config.AUDIT_LOG_MUTABLE:
        raise MethodNotAllowed("Audit log entries are append-only", allow="GET")


def update_entry(db: Session, entry_id: int, patch: Dict[str, Any]) -> AuditLog:
    _ensure_mutable()
    entry = get_entry(db, entry_id)
    for field, value in patch.items():
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    logger.warning("Audit entry %s modified: %s", entry_id, sorted(patch))
    return entry


def delete_entry(db: Session, entry_id: int) -> None:
    _ensure_mutable()
    entry = get_entry(db, entry_id)
    db.delete(entry)
    db.commit()
    logger.warning("Audit entry %s deleted", entry_id)
