"""Repositories for media folders and media items."""

from typing import Iterable, List, Optional

from .base import BaseRepository
from ..exceptions import FolderNotFoundError, MediaNotFoundError
from ..models.media import MediaFolder, MediaItem


class MediaFolderRepository(BaseRepository[MediaFolder]):
    """Data access layer for media folders."""

    model_class = MediaFolder
    not_found_error = FolderNotFoundError

    def get_children(self, parent_id: Optional[int]) -> List[MediaFolder]:
        """Direct subfolders of *parent_id* (``None`` = library root)."""
        query = self._base_query()
        if parent_id is None:
            query = query.filter(MediaFolder.parent_id.is_(None))
        else:
            query = query.filter(MediaFolder.parent_id == parent_id)
        return query.order_by(MediaFolder.name).all()


class MediaItemRepository(BaseRepository[MediaItem]):
    """Data access layer for uploaded media items."""

    model_class = MediaItem
    not_found_error = MediaNotFoundError

    def list_in_folder(
        self,
        folder_id: Optional[int],
        search: Optional[str] = None,
        mime_prefix: Optional[str] = None,
    ) -> List[MediaItem]:
        """Items directly inside *folder_id* (``None`` = library root).

        *search* matches the display name; *mime_prefix* ``"image"`` keeps
        ``image/*`` items only.
        """
        query = self._base_query()
        if folder_id is None:
            query = query.filter(MediaItem.folder_id.is_(None))
        else:
            query = query.filter(MediaItem.folder_id == folder_id)
        if search:
            query = query.filter(MediaItem.name.ilike(f"%{search}%"))
        if mime_prefix:
            query = query.filter(MediaItem.mime_type.like(f"{mime_prefix}/%"))
        return query.all()

    def list_in_folders(self, folder_ids: Iterable[int]) -> List[MediaItem]:
        ids = list(folder_ids)
        if not ids:
            return []
        return self._base_query().filter(MediaItem.folder_id.in_(ids)).all()
