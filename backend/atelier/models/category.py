"""Category model: a self-referencing tree ordered among siblings."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Category(Base):
    """A node in the category tree.

    ``path`` is never stored: it is derived on read from the parent chain
    (see services.tree.TreeIndex.display_path).
    """

    __tablename__ = "categories"
    __table_args__ = (
        Index("ix_categories_parent_id", "parent_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    # Deletion of a parent is rejected by the service while children exist.
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # SEO metadata
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(String(500), nullable=True)
    meta_keywords = Column(Text, nullable=True)
    og_image = Column(Text, nullable=True)

    # Presentation
    color = Column(String(7), nullable=True)
    icon = Column(String(50), nullable=True)
    image_id = Column(Integer, ForeignKey("media_items.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    image = relationship("MediaItem", foreign_keys=[image_id], lazy="joined")
