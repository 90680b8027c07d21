"""Business logic services."""

from .category_service import CategoryService
from .tag_service import TagService
from .media_service import MediaService
from .media_folder_service import MediaFolderService

__all__ = ["CategoryService", "TagService", "MediaService", "MediaFolderService"]
