"""Local-disk storage for media payloads.

Layout under ``MEDIA_ROOT``::

    <collection>/<media_id>/<file_name>
    <collection>/<media_id>/conversions/<stem>-<conversion><suffix>

Writes of the primary payload raise StorageError. Removal is best effort:
a missing file is logged and ignored, and pruning stops at the media
directory, leaving the collection directory in place.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Union

from ..core.config import settings
from ..exceptions import PayloadTooLargeError, StorageError
from ..models.media import MediaItem

logger = logging.getLogger(__name__)

CONVERSIONS_DIR = "conversions"
COPY_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class PayloadRef:
    """Detached copy of the MediaItem fields that locate its files.

    Taken before the row is deleted so the files can be removed after the
    transaction commits.
    """
    id: int
    collection: str
    file_name: str
    generated_conversions: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def of(cls, media: MediaItem) -> "PayloadRef":
        return cls(
            id=media.id,
            collection=media.collection,
            file_name=media.file_name,
            generated_conversions=dict(media.generated_conversions or {}),
        )


Stored = Union[MediaItem, PayloadRef]


def safe_file_name(file_name: Optional[str]) -> str:
    """Strip directories and characters that are unsafe on common filesystems."""
    name = Path(file_name or "").name.strip()
    name = re.sub(r"[^\w.\- ]+", "_", name).strip(" .")
    return name or "file"


class LocalMediaStorage:
    """Stores one directory per media item below *root*.

    Every method that locates files accepts a MediaItem or a PayloadRef.
    """

    def __init__(self, root):
        self.root = Path(root).resolve()

    def directory_for(self, media: Stored) -> Path:
        return self.root / media.collection / str(media.id)

    def path_for(self, media: Stored, conversion: Optional[str] = None) -> Path:
        """Path of the payload, or of one generated rendition of it."""
        directory = self.directory_for(media)
        if conversion is None:
            return directory / media.file_name
        original = Path(media.file_name)
        return directory / CONVERSIONS_DIR / f"{original.stem}-{conversion}{original.suffix}"

    def save(self, media: MediaItem, source: BinaryIO, max_bytes: Optional[int] = None) -> int:
        """Write *source* as the payload of *media*. Returns bytes written.

        With *max_bytes*, copying stops as soon as the limit is passed and
        PayloadTooLargeError is raised; the partial file is left for the
        caller to remove with ``delete_payload``.
        """
        target = self.path_for(media)
        written = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as out:
                for chunk in iter(lambda: source.read(COPY_CHUNK_BYTES), b""):
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise PayloadTooLargeError(max_bytes)
                    out.write(chunk)
            return written
        except OSError as e:
            logger.error("Failed to store media payload", extra={"media_id": media.id, "path": str(target)})
            raise StorageError(f"Could not store file for media {media.id}", e) from e

    def delete_payload(self, media: Stored) -> bool:
        """Remove the payload, its generated renditions, and empty directories.

        Returns True if the primary payload existed. Never raises.
        """
        existed = self._unlink(self.path_for(media), media.id)
        for conversion, generated in (media.generated_conversions or {}).items():
            if generated:
                self._unlink(self.path_for(media, conversion), media.id)
        directory = self.directory_for(media)
        self._prune_empty_dirs(directory / CONVERSIONS_DIR, directory)
        return existed

    def _unlink(self, path: Path, media_id) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            logger.warning("Media file already missing", extra={"media_id": media_id, "path": str(path)})
            return False
        except OSError as e:
            logger.warning(
                "Failed to remove media file: %s", e,
                extra={"media_id": media_id, "path": str(path)},
            )
            return False

    @staticmethod
    def _prune_empty_dirs(*directories: Path) -> None:
        """rmdir each of *directories* in turn, stopping at the first that is not empty."""
        for directory in directories:
            if not directory.exists():
                continue
            try:
                directory.rmdir()
            except OSError:
                return


def get_storage() -> LocalMediaStorage:
    """FastAPI dependency: storage rooted at the configured MEDIA_ROOT."""
    return LocalMediaStorage(settings.media_root)
