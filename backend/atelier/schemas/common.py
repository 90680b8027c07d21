"""Schemas shared by the category, tag, and media APIs."""

from pydantic import BaseModel, Field
from typing import List, Optional


class Breadcrumb(BaseModel):
    """One step of a root-to-node trail."""
    id: int
    name: str


class MoveRequest(BaseModel):
    """Re-parent a node. ``parent_id=None`` moves it to the root."""
    parent_id: Optional[int] = None


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted_count: int


class OrderItem(BaseModel):
    id: int
    order: int = Field(..., ge=0)


class OrderUpdateRequest(BaseModel):
    """Batch sibling reordering."""
    items: List[OrderItem] = Field(..., min_length=1)


class OrderUpdateResponse(BaseModel):
    updated_count: int
