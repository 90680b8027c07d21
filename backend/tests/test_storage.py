"""Tests for LocalMediaStorage: layout, best-effort removal, and pruning."""

import io

import pytest

from atelier.exceptions import PayloadTooLargeError, StorageError
from atelier.services.storage import CONVERSIONS_DIR, COPY_CHUNK_BYTES, PayloadRef, safe_file_name


def _ref(media_id=7, file_name="photo.jpg", conversions=None):
    return PayloadRef(
        id=media_id,
        collection="uploads",
        file_name=file_name,
        generated_conversions=conversions or {},
    )


class TestSafeFileName:

    def test_strips_directories(self):
        assert safe_file_name("../../etc/passwd") == "passwd"

    def test_replaces_unsafe_characters(self):
        assert safe_file_name("my photo (1).jpg") == "my photo _1_.jpg"

    def test_empty_name_falls_back(self):
        assert safe_file_name("") == "file"
        assert safe_file_name(None) == "file"


class TestLayout:

    def test_payload_path(self, storage, media_root):
        assert storage.path_for(_ref()) == media_root.resolve() / "uploads" / "7" / "photo.jpg"

    def test_conversion_path(self, storage, media_root):
        expected = media_root.resolve() / "uploads" / "7" / CONVERSIONS_DIR / "photo-thumb.jpg"
        assert storage.path_for(_ref(), "thumb") == expected

    def test_save_returns_size(self, storage):
        ref = _ref()
        assert storage.save(ref, io.BytesIO(b"12345")) == 5
        assert storage.path_for(ref).read_bytes() == b"12345"

    def test_save_failure_raises_storage_error(self, storage, media_root):
        media_root.mkdir(parents=True)
        (media_root / "uploads").write_text("not a directory")
        with pytest.raises(StorageError):
            storage.save(_ref(), io.BytesIO(b"x"))

    def test_save_stops_copying_past_limit(self, storage):
        source = io.BytesIO(b"x" * (COPY_CHUNK_BYTES * 4))
        with pytest.raises(PayloadTooLargeError):
            storage.save(_ref(), source, max_bytes=10)
        assert source.tell() == COPY_CHUNK_BYTES
        assert storage.path_for(_ref()).stat().st_size == 0


class TestDeletePayload:

    def test_prunes_media_directory_but_keeps_collection(self, storage, media_root):
        ref = _ref()
        storage.save(ref, io.BytesIO(b"data"))

        assert storage.delete_payload(ref) is True
        assert not storage.directory_for(ref).exists()
        assert (media_root / "uploads").is_dir()

    def test_removes_generated_conversions(self, storage):
        ref = _ref(conversions={"thumb": True, "preview": False})
        storage.save(ref, io.BytesIO(b"data"))
        thumb = storage.path_for(ref, "thumb")
        thumb.parent.mkdir(parents=True)
        thumb.write_bytes(b"small")

        storage.delete_payload(ref)
        assert not thumb.exists()
        assert not storage.directory_for(ref).exists()

    def test_missing_payload_does_not_raise(self, storage):
        assert storage.delete_payload(_ref()) is False

    def test_keeps_directories_of_other_items(self, storage):
        first, second = _ref(1), _ref(2)
        storage.save(first, io.BytesIO(b"a"))
        storage.save(second, io.BytesIO(b"b"))

        storage.delete_payload(first)
        assert storage.path_for(second).exists()
