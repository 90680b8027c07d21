"""Data access repositories."""

from .base import BaseRepository
from .category_repository import CategoryRepository
from .tag_repository import TagRepository
from .media_repository import MediaFolderRepository, MediaItemRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "TagRepository",
    "MediaFolderRepository",
    "MediaItemRepository",
]
