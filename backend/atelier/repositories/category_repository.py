"""Repository for category database operations."""

from typing import List, Optional, Union

from .base import BaseRepository
from .listing import apply_listing_filters
from ..exceptions import CategoryNotFoundError
from ..models.category import Category


class CategoryRepository(BaseRepository[Category]):
    """Data access layer for categories."""

    model_class = Category
    not_found_error = CategoryNotFoundError

    def list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        parent: Optional[Union[str, int]] = None,
        order_by: str = "order",
        order_dir: str = "asc",
        skip: int = 0,
        limit: int = 20,
    ) -> List[Category]:
        """List categories. *parent* is ``"root"`` for top-level rows or a parent id."""
        query = self._base_query()
        if parent == "root":
            query = query.filter(Category.parent_id.is_(None))
        elif parent is not None:
            query = query.filter(Category.parent_id == int(parent))

        query = apply_listing_filters(query, Category, search, status, order_by, order_dir)
        return query.offset(skip).limit(limit).all()

    def get_all_ordered(self) -> List[Category]:
        return self._base_query().order_by(Category.order, Category.id).all()

    def update_order(self, category_id: int, order: int) -> int:
        return (
            self._base_query()
            .filter(Category.id == category_id)
            .update({Category.order: order}, synchronize_session="fetch")
        )
