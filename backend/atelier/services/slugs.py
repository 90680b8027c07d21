"""Slug generation shared by categories and tags.

``slugify`` and ``derive_slug`` are pure; ``SlugDeriver`` binds them to a
model's ``slug`` column so callers only pass a candidate name.
"""

import re
import unicodedata
from typing import Collection, Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, ValidationError

# Used when a name has no ASCII-representable characters at all ("!!!", "日本").
FALLBACK_SLUG = "untitled"
MAX_SLUG_LENGTH = 200


def slugify(text: Optional[str]) -> str:
    """Create URL-safe slug from text.

    Idempotent: ``slugify(slugify(x)) == slugify(x)``. Empty or
    punctuation-only input yields ``""``.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return text[:MAX_SLUG_LENGTH].rstrip("-")


def derive_slug(candidate: Optional[str], taken: Collection[str]) -> str:
    """Return a slug for *candidate* that is not in *taken*.

    ``"Technology"`` -> ``"technology"``, then ``"technology-1"``,
    ``"technology-2"`` as earlier results are added to *taken*.
    """
    base = slugify(candidate) or FALLBACK_SLUG
    if base not in taken:
        return base

    count = 1
    while f"{base}-{count}" in taken:
        count += 1
    return f"{base}-{count}"


class SlugDeriver:
    """Derive unique slugs against the stored ``slug`` column of *model*."""

    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def derive(self, candidate: Optional[str], exclude_id: Optional[int] = None) -> str:
        """Unique slug for *candidate*, ignoring the row *exclude_id* (self on update)."""
        base = slugify(candidate) or FALLBACK_SLUG
        return derive_slug(base, self._taken_like(base, exclude_id))

    def is_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(self.model.id).filter(self.model.slug == slug)
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    def _taken_like(self, base: str, exclude_id: Optional[int]) -> set[str]:
        """Stored slugs equal to *base* or shaped like ``base-N``."""
        column = self.model.slug
        query = self.db.query(column).filter(
            (column == base) | (column.like(f"{base}-%"))
        )
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return {row[0] for row in query.all()}

    def resolve(
        self,
        name: Optional[str],
        requested: Optional[str] = None,
        exclude_id: Optional[int] = None,
        kind: str = "record",
    ) -> str:
        """Slug for a write: an explicitly *requested* slug must be free,
        otherwise one is derived from *name*.
        """
        if requested and requested.strip():
            slug = slugify(requested)
            if not slug:
                raise ValidationError("Slug must contain letters or digits", field="slug")
            if self.is_taken(slug, exclude_id):
                raise ConflictError(f"{kind.capitalize()} slug already in use: {slug}", details={"slug": slug})
            return slug
        return self.derive(name, exclude_id)
