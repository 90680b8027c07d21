"""Service for uploaded media items and the merged folder/file listing."""

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from sqlalchemy.orm import Session

from . import audit_service
from .persistence import commit_or_conflict, flush_or_conflict
from .storage import LocalMediaStorage, PayloadRef, safe_file_name
from .tree import TreeIndex
from ..core.auth import AuthContext
from ..core.config import settings
from ..exceptions import AtelierException, MediaNotFoundError, PayloadTooLargeError, StorageError, ValidationError
from ..models.media import MediaFolder, MediaItem
from ..repositories.media_repository import MediaFolderRepository, MediaItemRepository
from ..schemas.media import FolderListing, FolderResponse, LibraryEntry, MediaItemResponse

logger = logging.getLogger(__name__)

KIND = "media"
UPLOADS_COLLECTION = "uploads"
PREVIEW_CONVERSION = "preview"

SORT_FIELDS = ("name", "date", "size", "type")


def media_url(media: MediaItem) -> str:
    return f"/api/media/{media.id}/download"


def preview_url(media: MediaItem) -> Optional[str]:
    """Preview rendition URL, falling back to the payload for images."""
    conversions = media.generated_conversions or {}
    if conversions.get(PREVIEW_CONVERSION):
        return f"{media_url(media)}?conversion={PREVIEW_CONVERSION}"
    if media.is_image:
        return media_url(media)
    return None


def _sort_key(order_by: str):
    if order_by == "date":
        return lambda e: (e.created_at is None, e.created_at)
    if order_by == "size":
        return lambda e: e.size
    if order_by == "type":
        # Folders group ahead of files, files by MIME type
        return lambda e: (e.type != "folder", e.mime_type)
    return lambda e: e.name.lower()


class MediaService:
    """Upload, move, delete and list media items.

    Folder mutations live in MediaFolderService; this class only reads the
    folder tree to build listings and breadcrumbs.
    """

    def __init__(self, db: Session, storage: LocalMediaStorage):
        self.db = db
        self.storage = storage
        self.repo = MediaItemRepository(db)
        self.folder_repo = MediaFolderRepository(db)

    def get_media(self, media_id: int) -> MediaItem:
        return self.repo.get_by_id(media_id)

    def describe(self, media: MediaItem) -> MediaItemResponse:
        return MediaItemResponse(
            id=media.id,
            name=media.name,
            file_name=media.file_name,
            mime_type=media.mime_type,
            size=media.size,
            folder_id=media.folder_id,
            owner_id=media.owner_id,
            url=media_url(media),
            preview_url=preview_url(media),
            created_at=media.created_at,
        )

    def list_folder(
        self,
        folder_id: Optional[int] = None,
        search: Optional[str] = None,
        mime_type: Optional[str] = None,
        order_by: str = "name",
        order_dir: str = "asc",
    ) -> FolderListing:
        """Subfolders and files directly inside *folder_id*, sorted together.

        *search* (display name) and *mime_type* (``"image"``) narrow the files
        only; every subfolder stays listed so it can still be opened.
        """
        if order_by not in SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {order_by}", field="order_by")
        if order_dir not in ("asc", "desc"):
            raise ValidationError(f"Invalid sort direction: {order_dir}", field="order_dir")

        current = self.folder_repo.get_by_id(folder_id) if folder_id is not None else None

        entries: List[LibraryEntry] = []
        for folder in self.folder_repo.get_children(folder_id):
            entries.append(LibraryEntry(
                type="folder",
                id=folder.id,
                name=folder.name,
                parent_id=folder.parent_id,
                path=folder.path,
                created_at=folder.created_at,
            ))

        for item in self.repo.list_in_folder(folder_id, search, mime_type):
            entries.append(LibraryEntry(
                type="file",
                id=item.id,
                name=item.name,
                folder_id=item.folder_id,
                file_name=item.file_name,
                mime_type=item.mime_type or "",
                size=item.size or 0,
                url=media_url(item),
                preview_url=preview_url(item),
                created_at=item.created_at,
            ))

        entries.sort(key=_sort_key(order_by), reverse=order_dir == "desc")

        breadcrumbs = []
        if current is not None:
            breadcrumbs = TreeIndex.load(self.db, MediaFolder).breadcrumbs(current.id)

        return FolderListing(
            items=entries,
            total=len(entries),
            current_folder=FolderResponse.model_validate(current) if current is not None else None,
            breadcrumbs=breadcrumbs,
        )

    def upload(
        self,
        file_name: Optional[str],
        mime_type: Optional[str],
        source: BinaryIO,
        folder_id: Optional[int],
        actor: AuthContext,
    ) -> MediaItem:
        """Store *source* as a new media item owned by *actor*.

        The record is flushed first to get its id (the storage directory);
        any storage failure or an oversized payload rolls the record back.
        """
        self._validate_folder(folder_id)
        stored_name = safe_file_name(file_name)

        item = MediaItem(
            name=Path(stored_name).stem or stored_name,
            file_name=stored_name,
            mime_type=mime_type or "application/octet-stream",
            size=0,
            collection=UPLOADS_COLLECTION,
            folder_id=folder_id,
            owner_id=actor.user_id,
            generated_conversions={},
        )
        self.repo.add(item)
        flush_or_conflict(self.db, f"Folder {folder_id} changed while uploading")
        ref = PayloadRef.of(item)

        try:
            item.size = self.storage.save(item, source, max_bytes=settings.media_max_upload_bytes)
        except (StorageError, PayloadTooLargeError):
            self.db.rollback()
            self.storage.delete_payload(ref)
            raise

        audit_service.record(
            self.db, actor, "upload", KIND, item.id,
            {"file_name": stored_name, "size": item.size, "folder_id": folder_id},
        )
        try:
            commit_or_conflict(self.db)
        except AtelierException:
            self.storage.delete_payload(ref)
            raise
        self.db.refresh(item)
        logger.info("Media uploaded", extra={"media_id": item.id, "size": item.size})
        return item

    def move_media(self, media_id: int, folder_id: Optional[int], actor: AuthContext) -> MediaItem:
        item = self.repo.get_by_id(media_id)
        self._validate_folder(folder_id)

        old_folder = item.folder_id
        item.folder_id = folder_id
        audit_service.record(
            self.db, actor, "move", KIND, item.id,
            {"from_folder_id": old_folder, "to_folder_id": folder_id},
        )
        commit_or_conflict(self.db)
        self.db.refresh(item)
        return item

    def delete_media(self, media_id: int, actor: AuthContext) -> None:
        """Delete the record, then remove its files. File removal is best effort."""
        item = self.repo.get_by_id(media_id)
        ref = PayloadRef.of(item)

        self.repo.delete(item)
        flush_or_conflict(self.db)
        audit_service.record(self.db, actor, "delete", KIND, media_id, {"file_name": ref.file_name})
        commit_or_conflict(self.db)

        self.storage.delete_payload(ref)

    def download(self, media_id: int, conversion: Optional[str] = None) -> Tuple[Path, MediaItem]:
        """Path of the stored payload (or a generated rendition) for *media_id*."""
        item = self.repo.get_by_id(media_id)
        if conversion is not None and not (item.generated_conversions or {}).get(conversion):
            raise ValidationError(f"Unknown conversion: {conversion}", field="conversion")

        path = self.storage.path_for(item, conversion)
        if not path.is_file():
            logger.warning("Media payload missing on disk", extra={"media_id": media_id, "path": str(path)})
            raise MediaNotFoundError(media_id)
        return path, item

    def _validate_folder(self, folder_id: Optional[int]) -> None:
        if folder_id is not None and self.folder_repo.get_by_id_optional(folder_id) is None:
            raise ValidationError(f"Folder not found: {folder_id}", field="folder_id")
