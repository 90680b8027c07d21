"""Deep module for the media folder tree.

Folders carry a materialized ``path`` ("Images/2024"). Create, rename and
move keep it correct for the folder and its whole subtree inside the same
transaction. Deleting a folder cascades: every subfolder and every media
item below it goes, children before parents, and the stored files are
removed once the rows are committed.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import audit_service
from .persistence import commit_or_conflict, flush_or_conflict
from .storage import LocalMediaStorage, PayloadRef
from .tree import (
    TreeIndex,
    materialize_path,
    validate_parent_exists,
    validate_reparent,
    validate_unique_name,
)
from ..core.auth import AuthContext
from ..exceptions import DatabaseError
from ..models.media import MediaFolder
from ..repositories.media_repository import MediaFolderRepository, MediaItemRepository
from ..schemas.media import FolderCreate, FolderDeleteResponse

logger = logging.getLogger(__name__)

KIND = "folder"
NAME_CONFLICT = "A folder with this name already exists in this location."


class MediaFolderService:
    """Folder operations.

    Public methods:
        get_folder, create_folder, rename_folder, move_folder,
        delete_folder, breadcrumbs, descendants
    """

    def __init__(self, db: Session, storage: LocalMediaStorage):
        self.db = db
        self.storage = storage
        self.repo = MediaFolderRepository(db)
        self.media_repo = MediaItemRepository(db)

    def get_folder(self, folder_id: int) -> MediaFolder:
        return self.repo.get_by_id(folder_id)

    def breadcrumbs(self, folder_id: int) -> List[dict]:
        self.repo.get_by_id(folder_id)
        return self._index().breadcrumbs(folder_id)

    def descendants(self, folder_id: int) -> List[MediaFolder]:
        self.repo.get_by_id(folder_id)
        ids = self._index().descendants(folder_id)
        return self.repo.get_many(ids) if ids else []

    def create_folder(self, data: FolderCreate, actor: AuthContext) -> MediaFolder:
        index = self._index()
        validate_parent_exists(index, data.parent_id, KIND)
        validate_unique_name(index, data.parent_id, data.name, kind=KIND)

        folder = MediaFolder(
            name=data.name,
            parent_id=data.parent_id,
            path=materialize_path(self._parent_path(data.parent_id), data.name),
        )
        self.repo.add(folder)
        flush_or_conflict(self.db, NAME_CONFLICT)
        audit_service.record(self.db, actor, "create", KIND, folder.id, {"path": folder.path})
        commit_or_conflict(self.db, NAME_CONFLICT)
        self.db.refresh(folder)
        return folder

    def rename_folder(self, folder_id: int, name: str, actor: AuthContext) -> MediaFolder:
        folder = self.repo.get_by_id(folder_id)
        if name == folder.name:
            return folder

        index = self._index()
        validate_unique_name(index, folder.parent_id, name, exclude_id=folder.id, kind=KIND)

        old_path = folder.path
        folder.name = name
        updated = self._rematerialize(folder, index)
        audit_service.record(
            self.db, actor, "rename", KIND, folder.id,
            {"from": old_path, "to": folder.path, "paths_updated": updated},
        )
        commit_or_conflict(self.db, NAME_CONFLICT)
        self.db.refresh(folder)
        return folder

    def move_folder(self, folder_id: int, parent_id: Optional[int], actor: AuthContext) -> MediaFolder:
        folder = self.repo.get_by_id(folder_id)
        if parent_id == folder.parent_id:
            return folder

        index = self._index()
        validate_reparent(index, folder.id, parent_id, KIND)
        validate_unique_name(index, parent_id, folder.name, exclude_id=folder.id, kind=KIND)

        old_path = folder.path
        folder.parent_id = parent_id
        updated = self._rematerialize(folder, index)
        audit_service.record(
            self.db, actor, "move", KIND, folder.id,
            {"from": old_path, "to": folder.path, "paths_updated": updated},
        )
        commit_or_conflict(self.db, NAME_CONFLICT)
        self.db.refresh(folder)
        return folder

    def delete_folder(self, folder_id: int, actor: AuthContext) -> FolderDeleteResponse:
        """Delete *folder_id*, every folder below it, and all media they hold.

        One transaction: either the whole subtree goes or nothing does.
        Stored files are removed afterwards; a file that is already missing
        or cannot be removed is logged and does not fail the delete.
        """
        folder = self.repo.get_by_id(folder_id)
        order = self._index().post_order(folder.id)
        path = folder.path

        folders = {f.id: f for f in self.repo.get_many(order)}
        items_by_folder: Dict[int, list] = defaultdict(list)
        for item in self.media_repo.list_in_folders(order):
            items_by_folder[item.folder_id].append(item)
        payloads = [PayloadRef.of(item) for items in items_by_folder.values() for item in items]

        try:
            for current in order:
                for item in items_by_folder.get(current, []):
                    self.db.delete(item)
                self.db.flush()
                self.db.delete(folders[current])
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Cascade delete failed for folder %s: %s", folder_id, e)
            raise DatabaseError(f"Could not delete folder {folder_id}", e) from e

        audit_service.record(
            self.db, actor, "delete", KIND, folder_id,
            {"path": path, "deleted_folders": len(order), "deleted_media": len(payloads)},
        )
        commit_or_conflict(self.db)

        missing = 0
        for ref in payloads:
            if not self.storage.delete_payload(ref):
                missing += 1
        if missing:
            logger.warning(
                "Folder deleted with %d media files already missing", missing,
                extra={"folder_id": folder_id},
            )

        return FolderDeleteResponse(deleted_folders=len(order), deleted_media=len(payloads))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _index(self) -> TreeIndex:
        return TreeIndex.load(self.db, MediaFolder, MediaFolder.name, MediaFolder.id)

    def _parent_path(self, parent_id: Optional[int]) -> Optional[str]:
        if parent_id is None:
            return None
        return self.repo.get_by_id(parent_id).path

    def _rematerialize(self, folder: MediaFolder, index: TreeIndex) -> int:
        """Recompute ``path`` for *folder* and its subtree. Returns rows touched.

        *index* may predate the change: only the subtree shape is read from
        it, and rename or move never changes that shape.
        """
        folder.path = materialize_path(self._parent_path(folder.parent_id), folder.name)
        paths = {folder.id: folder.path}

        subtree = index.descendants(folder.id)
        rows = {f.id: f for f in self.repo.get_many(subtree)} if subtree else {}
        for descendant_id in subtree:
            row = rows[descendant_id]
            row.path = materialize_path(paths[row.parent_id], row.name)
            paths[row.id] = row.path
        return len(subtree) + 1
