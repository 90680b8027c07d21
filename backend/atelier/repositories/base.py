"""Base repository with shared get-by-ID patterns.

Subclasses specify model_class and not_found_error; the base provides the
common lookups plus add/delete, which only stage the change. Flushing and
committing belong to the service layer, which translates constraint errors.
"""

from typing import Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Category)
        not_found_error: NotFoundError subclass raised from get_by_id
    """

    model_class: Type[ModelT]
    not_found_error: Type[NotFoundError]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: int) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: int) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_many(self, ids: Iterable[int]) -> List[ModelT]:
        """Fetch every id in *ids*. Raises not_found_error for the first missing one."""
        wanted = list(dict.fromkeys(ids))
        found = {
            entity.id: entity
            for entity in self._base_query().filter(self.model_class.id.in_(wanted)).all()
        }
        for entity_id in wanted:
            if entity_id not in found:
                raise self.not_found_error(entity_id)
        return [found[entity_id] for entity_id in wanted]

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
