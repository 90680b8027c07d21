"""Deep module for the category tree: CRUD, move, guarded delete, paths.

Callers hand over validated schemas and the acting user; slug derivation,
cycle checks, child-count guards, and path/breadcrumb derivation all
happen here. Paths are never stored: every read builds a TreeIndex over
the categories table and derives ``"Root > Child > Leaf"`` from it.
"""

import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from . import audit_service
from .media_service import media_url
from .persistence import commit_or_conflict, flush_or_conflict
from .slugs import SlugDeriver, slugify
from .tree import (
    CATEGORY_PATH_SEPARATOR,
    TreeIndex,
    validate_delete,
    validate_parent_exists,
    validate_reparent,
)
from ..core.auth import AuthContext
from ..exceptions import ConflictError, ValidationError
from ..models.category import Category
from ..repositories.category_repository import CategoryRepository
from ..repositories.media_repository import MediaItemRepository
from ..schemas.category import (
    CategoryCreate,
    CategoryImage,
    CategoryOption,
    CategoryResponse,
    CategoryUpdate,
)
from ..schemas.common import OrderItem

logger = logging.getLogger(__name__)

KIND = "category"


class CategoryService:
    """All category operations behind a simple interface.

    Public methods:
        list_categories   -- search / status / parent filters, sorting
        get_category      -- lookup by id (raises CategoryNotFoundError)
        create_category   -- derives a unique slug when none is given
        update_category   -- partial update; re-derives slug on rename
        move_category     -- re-parent with cycle rejection
        delete_category   -- refused while the category has children
        bulk_delete       -- all-or-nothing delete of several categories
        update_order      -- batch sibling ordering
        breadcrumbs       -- root-to-node trail
        descendants       -- whole subtree below a category
        parent_options    -- dropdown entries, optionally excluding a subtree
        describe          -- response model with derived path/breadcrumbs
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CategoryRepository(db)
        self.media_repo = MediaItemRepository(db)
        self.slugs = SlugDeriver(db, Category)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_categories(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        parent: Optional[Union[str, int]] = None,
        order_by: str = "order",
        order_dir: str = "asc",
        skip: int = 0,
        limit: int = 20,
    ) -> List[Category]:
        return self.repo.list(search, status, parent, order_by, order_dir, skip, limit)

    def get_category(self, category_id: int) -> Category:
        return self.repo.get_by_id(category_id)

    def breadcrumbs(self, category_id: int) -> List[dict]:
        self.repo.get_by_id(category_id)
        return self._index().breadcrumbs(category_id)

    def descendants(self, category_id: int) -> List[Category]:
        """Every category below *category_id*, parents listed before children."""
        self.repo.get_by_id(category_id)
        ids = self._index().descendants(category_id)
        return self.repo.get_many(ids) if ids else []

    def parent_options(self, exclude_id: Optional[int] = None) -> List[CategoryOption]:
        """Parent dropdown entries: full display path and nesting level.

        With *exclude_id* the category and its whole subtree are left out,
        since choosing any of them as parent would create a cycle.
        """
        index = self._index()
        excluded = set()
        if exclude_id is not None and exclude_id in index:
            excluded = {exclude_id, *index.descendants(exclude_id)}

        return [
            CategoryOption(
                id=category.id,
                name=index.display_path(category.id, CATEGORY_PATH_SEPARATOR),
                level=index.depth(category.id),
            )
            for category in self.repo.get_all_ordered()
            if category.id not in excluded
        ]

    def describe(self, category: Category, index: Optional[TreeIndex] = None) -> CategoryResponse:
        """Response model with the virtual path, depth, and breadcrumbs filled in."""
        index = index or self._index()
        crumbs = index.breadcrumbs(category.id)
        image = None
        if category.image is not None:
            image = CategoryImage(
                id=category.image.id,
                name=category.image.name,
                url=media_url(category.image),
            )
        return CategoryResponse(
            id=category.id,
            name=category.name,
            slug=category.slug,
            parent_id=category.parent_id,
            order=category.order,
            description=category.description,
            is_active=category.is_active,
            meta_title=category.meta_title,
            meta_description=category.meta_description,
            meta_keywords=category.meta_keywords,
            og_image=category.og_image,
            color=category.color,
            icon=category.icon,
            image_id=category.image_id,
            image=image,
            path=CATEGORY_PATH_SEPARATOR.join(c["name"] for c in crumbs),
            depth=len(crumbs) - 1,
            breadcrumbs=crumbs,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )

    def describe_many(self, categories: Iterable[Category]) -> List[CategoryResponse]:
        index = self._index()
        return [self.describe(category, index) for category in categories]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_category(self, data: CategoryCreate, actor: AuthContext) -> Category:
        validate_parent_exists(self._index(), data.parent_id, KIND)
        self._validate_image(data.image_id)

        fields = data.model_dump(exclude={"slug"})
        category = Category(**fields, slug=self.slugs.resolve(data.name, data.slug, kind=KIND))
        self.repo.add(category)
        flush_or_conflict(self.db, f"Category slug already in use: {category.slug}")

        audit_service.record(self.db, actor, "create", KIND, category.id, {"slug": category.slug})
        commit_or_conflict(self.db, f"Category slug already in use: {category.slug}")
        self.db.refresh(category)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate, actor: AuthContext) -> Category:
        """Apply the fields present in *data*.

        A changed name re-derives the slug unless the same update sets a new
        slug explicitly.
        """
        category = self.repo.get_by_id(category_id)
        changes = data.model_dump(exclude_unset=True)

        if "name" in changes and changes["name"] is None:
            raise ValidationError("Name cannot be empty", field="name")
        if "parent_id" in changes and changes["parent_id"] != category.parent_id:
            validate_reparent(self._index(), category.id, changes["parent_id"], KIND)
        if changes.get("image_id") is not None:
            self._validate_image(changes["image_id"])

        requested_slug = changes.pop("slug", None)
        if requested_slug and slugify(requested_slug) != category.slug:
            category.slug = self.slugs.resolve(None, requested_slug, exclude_id=category.id, kind=KIND)
        elif "name" in changes and changes["name"] != category.name:
            category.slug = self.slugs.derive(changes["name"], exclude_id=category.id)

        for key, value in changes.items():
            if value is None and key in ("order", "is_active"):
                continue
            setattr(category, key, value)

        flush_or_conflict(self.db, f"Category slug already in use: {category.slug}")
        audit_service.record(self.db, actor, "update", KIND, category.id, {"fields": sorted(changes)})
        commit_or_conflict(self.db, f"Category slug already in use: {category.slug}")
        self.db.refresh(category)
        return category

    def move_category(self, category_id: int, parent_id: Optional[int], actor: AuthContext) -> Category:
        category = self.repo.get_by_id(category_id)
        validate_reparent(self._index(), category.id, parent_id, KIND)

        old_parent = category.parent_id
        category.parent_id = parent_id
        audit_service.record(
            self.db, actor, "move", KIND, category.id,
            {"from_parent_id": old_parent, "to_parent_id": parent_id},
        )
        commit_or_conflict(self.db)
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int, actor: AuthContext) -> None:
        """Delete a childless category. Never cascades."""
        category = self.repo.get_by_id(category_id)
        validate_delete(self._index(), category.id, KIND)

        self.repo.delete(category)
        flush_or_conflict(self.db, "Category gained children while being deleted")
        audit_service.record(self.db, actor, "delete", KIND, category_id, {"name": category.name})
        commit_or_conflict(self.db, "Category gained children while being deleted")

    def bulk_delete(self, ids: List[int], actor: AuthContext) -> int:
        """Delete every listed category, or none if any of them has children."""
        categories = self.repo.get_many(ids)
        index = self._index()
        blocked = [c.id for c in categories if index.has_children(c.id)]
        if blocked:
            raise ConflictError(
                "Cannot delete categories with subcategories.",
                details={"ids": blocked},
            )

        for category in categories:
            self.db.delete(category)
        flush_or_conflict(self.db, "Categories gained children while being deleted")
        audit_service.record(self.db, actor, "bulk_delete", KIND, None, {"ids": [c.id for c in categories]})
        commit_or_conflict(self.db, "Categories gained children while being deleted")
        return len(categories)

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

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _index(self) -> TreeIndex:
        return TreeIndex.load(self.db, Category, Category.order, Category.id)

    def _validate_image(self, image_id: Optional[int]) -> None:
        if image_id is not None and self.media_repo.get_by_id_optional(image_id) is None:
            raise ValidationError(f"Image not found: {image_id}", field="image_id")
