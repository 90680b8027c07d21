"""Repository for tag database operations."""

from typing import List, Optional

from .base import BaseRepository
from .listing import apply_listing_filters
from ..exceptions import TagNotFoundError
from ..models.tag import Tag


class TagRepository(BaseRepository[Tag]):
    """Data access layer for tags."""

    model_class = Tag
    not_found_error = TagNotFoundError

    def list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        order_by: str = "order",
        order_dir: str = "asc",
        skip: int = 0,
        limit: int = 20,
    ) -> List[Tag]:
        query = apply_listing_filters(self._base_query(), Tag, search, status, order_by, order_dir)
        return query.offset(skip).limit(limit).all()

    def update_order(self, tag_id: int, order: int) -> int:
        return (
            self._base_query()
            .filter(Tag.id == tag_id)
            .update({Tag.order: order}, synchronize_session="fetch")
        )
