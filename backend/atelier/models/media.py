"""Media library models: folders (materialized-path tree) and uploaded items."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.sql import func
from ..database import Base


class MediaFolder(Base):
    """A folder in the media library.

    ``path`` is materialized at write time ("Images/2024") and re-derived for
    the whole subtree whenever an ancestor is renamed or moved. Its unique
    constraint backs up the sibling-name check under concurrent writes.
    """

    __tablename__ = "media_folders"
    __table_args__ = (
        Index("ix_media_folders_parent_id", "parent_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(Integer, ForeignKey("media_folders.id", ondelete="CASCADE"), nullable=True)
    path = Column(Text, nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class MediaItem(Base):
    """An uploaded file. The payload itself lives in LocalMediaStorage."""

    __tablename__ = "media_items"
    __table_args__ = (
        Index("ix_media_items_folder_id", "folder_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size = Column(BigInteger, nullable=False, default=0)
    collection = Column(String(50), nullable=False, default="uploads")
    folder_id = Column(Integer, ForeignKey("media_folders.id", ondelete="SET NULL"), nullable=True)

    # Acting user at upload time
    owner_id = Column(String(50), nullable=False)

    # {"thumb": true, "preview": false}: renditions written next to the payload
    generated_conversions = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_image(self) -> bool:
        return bool(self.mime_type and self.mime_type.startswith("image/"))
