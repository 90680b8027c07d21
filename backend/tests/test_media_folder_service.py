"""Tests for MediaFolderService: materialized paths and cascading delete."""

import io

import pytest
from sqlalchemy.exc import OperationalError

from atelier.exceptions import ConflictError, DatabaseError, FolderNotFoundError, ValidationError
from atelier.models import AuditLog, MediaFolder, MediaItem
from atelier.schemas.media import FolderCreate
from atelier.services.media_folder_service import MediaFolderService
from atelier.services.media_service import MediaService
from tests.conftest import ADMIN


@pytest.fixture()
def folders(db, storage):
    return MediaFolderService(db, storage)


@pytest.fixture()
def media(db, storage):
    return MediaService(db, storage)


def _folder(folders, name, parent=None):
    parent_id = parent.id if parent is not None else None
    return folders.create_folder(FolderCreate(name=name, parent_id=parent_id), ADMIN)


def _upload(media, name, folder):
    return media.upload(name, "image/jpeg", io.BytesIO(b"payload-" + name.encode()), folder.id, ADMIN)


class TestCreate:

    def test_paths_are_materialized(self, folders):
        images = _folder(folders, "Images")
        year = _folder(folders, "2024", images)
        assert images.path == "Images"
        assert year.path == "Images/2024"

    def test_duplicate_sibling_name_conflicts(self, folders):
        _folder(folders, "Images")
        with pytest.raises(ConflictError):
            _folder(folders, "Images")

    def test_same_name_under_different_parents(self, folders):
        a = _folder(folders, "A")
        b = _folder(folders, "B")
        assert _folder(folders, "Shared", a).path == "A/Shared"
        assert _folder(folders, "Shared", b).path == "B/Shared"

    def test_duplicate_path_from_database(self, folders, db, monkeypatch):
        _folder(folders, "Images")
        monkeypatch.setattr("atelier.services.media_folder_service.validate_unique_name", lambda *args, **kwargs: None)

        with pytest.raises(ConflictError):
            _folder(folders, "Images")
        assert db.query(MediaFolder).count() == 1

    def test_missing_parent_rejected(self, folders):
        with pytest.raises(ValidationError):
            folders.create_folder(FolderCreate(name="Lost", parent_id=999), ADMIN)


class TestRenameAndMove:

    def test_rename_propagates_to_subtree(self, folders, db):
        images = _folder(folders, "Images")
        year = _folder(folders, "2024", images)
        month = _folder(folders, "05", year)

        folders.rename_folder(images.id, "Media", ADMIN)

        db.expire_all()
        assert db.get(MediaFolder, images.id).path == "Media"
        assert db.get(MediaFolder, year.id).path == "Media/2024"
        assert db.get(MediaFolder, month.id).path == "Media/2024/05"

    def test_rename_to_sibling_name_conflicts(self, folders):
        _folder(folders, "Images")
        docs = _folder(folders, "Docs")
        with pytest.raises(ConflictError):
            folders.rename_folder(docs.id, "Images", ADMIN)

    def test_move_rewrites_paths(self, folders, db):
        archive = _folder(folders, "Archive")
        images = _folder(folders, "Images")
        year = _folder(folders, "2024", images)

        folders.move_folder(images.id, archive.id, ADMIN)

        db.expire_all()
        assert db.get(MediaFolder, images.id).path == "Archive/Images"
        assert db.get(MediaFolder, year.id).path == "Archive/Images/2024"

    def test_move_back_to_root(self, folders):
        archive = _folder(folders, "Archive")
        images = _folder(folders, "Images", archive)
        moved = folders.move_folder(images.id, None, ADMIN)
        assert moved.path == "Images"

    def test_move_into_own_descendant_conflicts(self, folders, db):
        images = _folder(folders, "Images")
        year = _folder(folders, "2024", images)
        with pytest.raises(ConflictError):
            folders.move_folder(images.id, year.id, ADMIN)
        db.expire_all()
        assert db.get(MediaFolder, images.id).parent_id is None

    def test_breadcrumbs_and_descendants(self, folders):
        images = _folder(folders, "Images")
        year = _folder(folders, "2024", images)
        month = _folder(folders, "05", year)

        assert [c["name"] for c in folders.breadcrumbs(month.id)] == ["Images", "2024", "05"]
        assert [f.id for f in folders.descendants(images.id)] == [year.id, month.id]


class TestCascadeDelete:

    def test_deletes_subtree_media_and_files(self, folders, media, storage, db):
        target = _folder(folders, "Trip")
        _folder(folders, "Empty", target)
        first = _upload(media, "beach.jpg", target)
        second = _upload(media, "sunset.jpg", target)
        keep_folder = _folder(folders, "Keep")
        kept = _upload(media, "kept.jpg", keep_folder)

        first_path = storage.path_for(first)
        second_path = storage.path_for(second)
        second_path.unlink()  # payload already gone before the delete

        result = folders.delete_folder(target.id, ADMIN)

        assert result.deleted_folders == 2
        assert result.deleted_media == 2
        assert db.query(MediaFolder).filter(MediaFolder.id == target.id).count() == 0
        assert [f.name for f in db.query(MediaFolder).all()] == ["Keep"]
        assert [m.id for m in db.query(MediaItem).all()] == [kept.id]
        assert not first_path.exists()
        assert not first_path.parent.exists()
        assert storage.path_for(kept).exists()

    def test_nested_media_deleted_children_first(self, folders, media, db):
        root = _folder(folders, "Root")
        mid = _folder(folders, "Mid", root)
        leaf = _folder(folders, "Leaf", mid)
        for folder in (root, mid, leaf):
            _upload(media, f"{folder.name}.jpg", folder)

        result = folders.delete_folder(root.id, ADMIN)

        assert result.deleted_folders == 3
        assert result.deleted_media == 3
        assert db.query(MediaFolder).count() == 0
        assert db.query(MediaItem).count() == 0

    def test_delete_is_audited(self, folders, db):
        folder = _folder(folders, "Trip")
        folders.delete_folder(folder.id, ADMIN)
        entry = db.query(AuditLog).filter(AuditLog.action == "delete").one()
        assert entry.resource_type == "folder"
        assert entry.resource_id == str(folder.id)

    def test_missing_folder_raises(self, folders):
        with pytest.raises(FolderNotFoundError):
            folders.delete_folder(999, ADMIN)

    def test_database_failure_keeps_rows_and_files(self, folders, media, storage, db, monkeypatch):
        target = _folder(folders, "Trip")
        child = _folder(folders, "Day 1", target)
        item = _upload(media, "beach.jpg", child)
        payload = storage.path_for(item)
        real_flush = db.flush

        def failing_flush(*args, **kwargs):
            if db.deleted:
                raise OperationalError("DELETE", {}, Exception("disk I/O error"))
            return real_flush(*args, **kwargs)

        monkeypatch.setattr(db, "flush", failing_flush)
        with pytest.raises(DatabaseError):
            folders.delete_folder(target.id, ADMIN)
        monkeypatch.undo()

        assert db.query(MediaFolder).count() == 2
        assert db.query(MediaItem).count() == 1
        assert payload.exists()
