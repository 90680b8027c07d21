"""Category API: tree CRUD, move, breadcrumbs, descendants, batch ops.

Endpoints are thin; CategoryService owns slugs, cycle checks, the
child-count delete guard, and path derivation.
"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.category import CategoryCreate, CategoryOption, CategoryResponse, CategoryUpdate
from ..schemas.common import (
    Breadcrumb,
    BulkDeleteRequest,
    BulkDeleteResponse,
    MoveRequest,
    OrderUpdateRequest,
    OrderUpdateResponse,
)
from ..services import CategoryService

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryResponse])
def list_categories(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, pattern="^(active|inactive)$"),
    parent: Optional[str] = Query(None, pattern=r"^(root|\d+)$"),
    order_by: str = Query("order", pattern="^(name|created_at|order)$"),
    order_dir: str = Query("asc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """List categories. ``parent=root`` keeps top-level categories only."""
    service = CategoryService(db)
    categories = service.list_categories(search, status, parent, order_by, order_dir, skip, limit)
    return service.describe_many(categories)


@router.get("/options", response_model=List[CategoryOption])
def parent_options(
    exclude_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Parent dropdown entries. *exclude_id* drops that category and its subtree."""
    return CategoryService(db).parent_options(exclude_id)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = CategoryService(db)
    return service.describe(service.create_category(data, auth))


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_categories(
    request: BulkDeleteRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete all listed categories, or none if any still has subcategories."""
    count = CategoryService(db).bulk_delete(request.ids, auth)
    return BulkDeleteResponse(deleted_count=count)


@router.post("/update-order", response_model=OrderUpdateResponse)
def update_category_order(
    request: OrderUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    count = CategoryService(db).update_order(request.items, auth)
    return OrderUpdateResponse(updated_count=count)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = CategoryService(db)
    return service.describe(service.get_category(category_id))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = CategoryService(db)
    return service.describe(service.update_category(category_id, data, auth))


@router.put("/{category_id}/move", response_model=CategoryResponse)
def move_category(
    category_id: int,
    request: MoveRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Re-parent a category. Moving under itself or a descendant is a 409."""
    service = CategoryService(db)
    return service.describe(service.move_category(category_id, request.parent_id, auth))


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a category. Refused with 409 while it has subcategories."""
    CategoryService(db).delete_category(category_id, auth)
    return Response(status_code=204)


@router.get("/{category_id}/breadcrumbs", response_model=List[Breadcrumb])
def get_breadcrumbs(
    category_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return CategoryService(db).breadcrumbs(category_id)


@router.get("/{category_id}/descendants", response_model=List[CategoryResponse])
def get_descendants(
    category_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = CategoryService(db)
    return service.describe_many(service.descendants(category_id))
