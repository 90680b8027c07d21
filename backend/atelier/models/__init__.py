"""Database models."""

from .category import Category
from .tag import Tag
from .media import MediaFolder, MediaItem
from .audit_log import AuditLog

__all__ = [
    "Category", "Tag", "MediaFolder", "MediaItem", "AuditLog",
]
