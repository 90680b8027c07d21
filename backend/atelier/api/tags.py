"""Tag API endpoints."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.common import BulkDeleteRequest, BulkDeleteResponse, OrderUpdateRequest, OrderUpdateResponse
from ..schemas.tag import TagCreate, TagResponse, TagUpdate
from ..services import TagService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=List[TagResponse])
def list_tags(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, pattern="^(active|inactive)$"),
    order_by: str = Query("order", pattern="^(name|created_at|order)$"),
    order_dir: str = Query("asc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return TagService(db).list_tags(search, status, order_by, order_dir, skip, limit)


@router.post("", response_model=TagResponse, status_code=201)
def create_tag(
    data: TagCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return TagService(db).create_tag(data, auth)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_tags(
    request: BulkDeleteRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return BulkDeleteResponse(deleted_count=TagService(db).bulk_delete(request.ids, auth))


@router.post("/update-order", response_model=OrderUpdateResponse)
def update_tag_order(
    request: OrderUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return OrderUpdateResponse(updated_count=TagService(db).update_order(request.items, auth))


@router.get("/{tag_id}", response_model=TagResponse)
def get_tag(tag_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    return TagService(db).get_tag(tag_id)


@router.put("/{tag_id}", response_model=TagResponse)
def update_tag(
    tag_id: int,
    data: TagUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return TagService(db).update_tag(tag_id, data, auth)


@router.delete("/{tag_id}", status_code=204)
def delete_tag(tag_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    TagService(db).delete_tag(tag_id, auth)
    return Response(status_code=204)
