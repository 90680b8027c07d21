"""Pydantic schemas for API validation."""

from .common import (
    Breadcrumb,
    MoveRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    OrderItem,
    OrderUpdateRequest,
    OrderUpdateResponse,
)
from .category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryOption,
)
from .tag import TagCreate, TagUpdate, TagResponse
from .audit import AuditLogResponse
from .media import (
    FolderCreate,
    FolderRename,
    FolderResponse,
    FolderDeleteResponse,
    MediaItemResponse,
    MediaMoveRequest,
    LibraryEntry,
    FolderListing,
)

__all__ = [
    "Breadcrumb",
    "MoveRequest",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "OrderItem",
    "OrderUpdateRequest",
    "OrderUpdateResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryOption",
    "TagCreate",
    "TagUpdate",
    "TagResponse",
    "AuditLogResponse",
    "FolderCreate",
    "FolderRename",
    "FolderResponse",
    "FolderDeleteResponse",
    "MediaItemResponse",
    "MediaMoveRequest",
    "LibraryEntry",
    "FolderListing",
]
