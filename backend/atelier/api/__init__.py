"""API routes."""

from .categories import router as categories_router
from .tags import router as tags_router
from .media import router as media_router
from .audit import router as audit_router

__all__ = ["categories_router", "tags_router", "media_router", "audit_router"]
