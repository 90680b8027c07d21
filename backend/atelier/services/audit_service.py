"""Audit logging service: records every state-changing admin operation.

Entries are immutable. ``record`` adds the entry to the caller's session so
it commits (or rolls back) together with the change it describes.

Usage in service layer:
    audit_service.record(db, actor, "delete", "category", category.id,
                         details={"name": category.name})
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    actor: AuthContext,
    action: str,
    resource_type: str,
    resource_id: Optional[Any] = None,
    details: Optional[dict] = None,
) -> None:
    """Stage an audit entry in *db*; the caller's commit persists it."""
    db.add(AuditLog(
        user_id=actor.user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=json.dumps(details, default=str) if details else None,
    ))
    logger.info(
        f"{action} {resource_type}",
        extra={"user_id": actor.user_id, "resource_type": resource_type, "resource_id": resource_id},
    )


def get_recent(db: Session, limit: int = 100) -> list[AuditLog]:
    """Get the most recent audit log entries."""
    return (
        db.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def get_by_resource(db: Session, resource_type: str, resource_id: Any, limit: int = 100) -> list[AuditLog]:
    """Get audit log entries for a specific resource."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.resource_type == resource_type, AuditLog.resource_id == str(resource_id))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def purge_old_entries(db: Session, days: int = 365) -> int:
    """Delete audit log entries older than `days`. Returns count of deleted rows.

    Skipped when days <= 0 (keep forever). Never raises; logs failures.
    """
    if days <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        count = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete()
        db.commit()
        return count
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to purge audit log: %s", e)
        db.rollback()
        return 0
