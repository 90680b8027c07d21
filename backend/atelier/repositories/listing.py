"""Search, status, and sort filters shared by category and tag listings."""

from typing import Optional

from sqlalchemy.orm import Query

SORTABLE_COLUMNS = ("name", "created_at", "order")


def apply_listing_filters(
    query: Query,
    model,
    search: Optional[str] = None,
    status: Optional[str] = None,
    order_by: str = "order",
    order_dir: str = "asc",
) -> Query:
    """Filter by substring *search* over name/description/slug and by
    ``active``/``inactive`` *status*, then sort.

    Unknown *order_by* values fall back to ``order`` ascending.
    """
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            model.name.ilike(pattern)
            | model.description.ilike(pattern)
            | model.slug.ilike(pattern)
        )

    if status == "active":
        query = query.filter(model.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(model.is_active.is_(False))

    if order_by in SORTABLE_COLUMNS:
        column = getattr(model, order_by)
        column = column.desc() if order_dir == "desc" else column.asc()
    else:
        column = model.order.asc()
    return query.order_by(column, model.id.asc())
