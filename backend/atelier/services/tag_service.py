"""Service for tags: flat labels sharing the category slug rules."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import audit_service
from .persistence import commit_or_conflict, flush_or_conflict
from .slugs import SlugDeriver, slugify
from ..core.auth import AuthContext
from ..exceptions import ValidationError
from ..models.tag import Tag
from ..repositories.tag_repository import TagRepository
from ..schemas.common import OrderItem
from ..schemas.tag import TagCreate, TagUpdate

logger = logging.getLogger(__name__)

KIND = "tag"


class TagService:
    """Business logic for tags.

    Public methods:
        list_tags, get_tag, create_tag, update_tag, delete_tag,
        bulk_delete, update_order
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TagRepository(db)
        self.slugs = SlugDeriver(db, Tag)

    def list_tags(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        order_by: str = "order",
        order_dir: str = "asc",
        skip: int = 0,
        limit: int = 20,
    ) -> List[Tag]:
        return self.repo.list(search, status, order_by, order_dir, skip, limit)

    def get_tag(self, tag_id: int) -> Tag:
        return self.repo.get_by_id(tag_id)

    def create_tag(self, data: TagCreate, actor: AuthContext) -> Tag:
        tag = Tag(**data.model_dump(exclude={"slug"}), slug=self.slugs.resolve(data.name, data.slug, kind=KIND))
        self.repo.add(tag)
        flush_or_conflict(self.db, f"Tag slug already in use: {tag.slug}")
        audit_service.record(self.db, actor, "create", KIND, tag.id, {"slug": tag.slug})
        commit_or_conflict(self.db, f"Tag slug already in use: {tag.slug}")
        self.db.refresh(tag)
        return tag

    def update_tag(self, tag_id: int, data: TagUpdate, actor: AuthContext) -> Tag:
        """Partial update. Renaming re-derives the slug unless a new slug is also sent."""
        tag = self.repo.get_by_id(tag_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Name cannot be empty", field="name")

        requested_slug = changes.pop("slug", None)
        if requested_slug and slugify(requested_slug) != tag.slug:
            tag.slug = self.slugs.resolve(None, requested_slug, exclude_id=tag.id, kind=KIND)
        elif "name" in changes and changes["name"] != tag.name:
            tag.slug = self.slugs.derive(changes["name"], exclude_id=tag.id)

        for key, value in changes.items():
            if value is None and key in ("order", "is_active"):
                continue
            setattr(tag, key, value)

        audit_service.record(self.db, actor, "update", KIND, tag.id, {"fields": sorted(changes)})
        commit_or_conflict(self.db, f"Tag slug already in use: {tag.slug}")
        self.db.refresh(tag)
        return tag

    def delete_tag(self, tag_id: int, actor: AuthContext) -> None:
        tag = self.repo.get_by_id(tag_id)
        self.repo.delete(tag)
        flush_or_conflict(self.db)
        audit_service.record(self.db, actor, "delete", KIND, tag_id, {"name": tag.name})
        commit_or_conflict(self.db)

    def bulk_delete(self, ids: List[int], actor: AuthContext) -> int:
        tags = self.repo.get_many(ids)
        for tag in tags:
            self.db.delete(tag)
        audit_service.record(self.db, actor, "bulk_delete", KIND, None, {"ids": [t.id for t in tags]})
        commit_or_conflict(self.db)
        return len(tags)

    def update_order(self, items: List[OrderItem], actor: AuthContext) -> int:
        self.repo.get_many(item.id for item in items)
        for item in items:
            self.repo.update_order(item.id, item.order)
        audit_service.record(
            self.db, actor, "reorder", KIND, None,
            {"order": {item.id: item.order for item in items}},
        )
        commit_or_conflict(self.db)
        return len(items)
