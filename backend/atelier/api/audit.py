"""Audit log API: read-only view of recorded admin operations."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.audit import AuditLogResponse
from ..services import audit_service

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("", response_model=List[AuditLogResponse])
def list_audit_entries(
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Newest entries first. Filter by resource with both query parameters."""
    if resource_type and resource_id:
        return audit_service.get_by_resource(db, resource_type, resource_id, limit)
    return audit_service.get_recent(db, limit)
