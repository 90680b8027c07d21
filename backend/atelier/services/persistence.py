"""Flush/commit helpers translating store-level failures into domain errors.

Application checks (slug/name uniqueness, cycle guards) run first as fast,
user-friendly pre-checks. The unique constraints on ``categories.slug``,
``tags.slug`` and ``media_folders.path`` and the category parent foreign key
remain authoritative: a write that loses a race surfaces as an
IntegrityError, on flush or on commit, and becomes ConflictError.
"""

import logging
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT = "Change conflicts with existing data"


def flush_or_conflict(db: Session, conflict_message: str = DEFAULT_CONFLICT) -> None:
    """Flush pending writes; roll back and raise ConflictError / DatabaseError on failure."""
    _run(db, db.flush, "flush", conflict_message)


def commit_or_conflict(db: Session, conflict_message: str = DEFAULT_CONFLICT) -> None:
    """Commit *db*; roll back and raise ConflictError / DatabaseError on failure."""
    _run(db, db.commit, "commit", conflict_message)


def _run(db: Session, operation: Callable[[], None], label: str, conflict_message: str) -> None:
    try:
        operation()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Constraint violation on %s: %s", label, e.orig)
        raise ConflictError(conflict_message, details={"constraint": str(e.orig)}) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database %s failed: %s", label, e)
        raise DatabaseError("Database operation failed", e) from e
