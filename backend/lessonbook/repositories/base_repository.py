# backend/lessonbook/repositories/base_repository.py
"""
Base Repository Pattern for the lesson booking backend.

Generic get/create/update/delete over one model class. Repositories flush
but never commit; the service that called them owns the transaction, so
database constraints fire inside the caller's unit of work.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Data access for one model class.

    Attributes:
        db: SQLAlchemy session shared with the calling service
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def model_name(self) -> str:
        return self.model.__name__

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Database errors propagate unchanged (not wrapped like in
        ``BaseService.transaction``) so callers can inspect which constraint
        fired.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.logger.error("Repository transaction failed: %s", exc)
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            raise

    def _fail(self, action: str, exc: SQLAlchemyError) -> RepositoryException:
        self.logger.error("Failed to %s %s: %s", action, self.model_name, exc)
        return RepositoryException(f"Failed to {action} {self.model_name}: {exc}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """The entity with primary key ``id``, optionally with its relations eagerly loaded."""
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as exc:
            raise self._fail("load", exc) from exc

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        try:
            return self.db.query(self.model).filter_by(**criteria).first()
        except SQLAlchemyError as exc:
            raise self._fail("look up", exc) from exc

    def exists(self, **criteria: Any) -> bool:
        return self.find_one_by(**criteria) is not None

    def count(self, **criteria: Any) -> int:
        try:
            return self.db.query(self.model).filter_by(**criteria).count()
        except SQLAlchemyError as exc:
            raise self._fail("count", exc) from exc

    def create(self, **values: Any) -> T:
        """
        Add a new entity and flush it so its id is assigned.

        Raises:
            RepositoryException: On constraint violations or database errors
        """
        try:
            entity = self.model(**values)
            self.db.add(entity)
            self.db.flush()
            return entity
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._fail("create", exc) from exc

    def update(self, id: str, **values: Any) -> Optional[T]:
        """Set the given attributes; returns None when the entity does not exist."""
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if entity is None:
                return None
            for key, value in values.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._fail("update", exc) from exc

    def delete(self, id: str) -> bool:
        """
        Delete by primary key; returns False when the entity does not exist.

        Raises:
            RepositoryException: When other rows still reference the entity
        """
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if entity is None:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True
        except IntegrityError as exc:
            self.logger.warning("%s %s is still referenced: %s", self.model_name, id, exc)
            self.db.rollback()
            raise RepositoryException(f"{self.model_name} {id} is still referenced") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._fail("delete", exc) from exc

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override to eagerly load the relationships responses need."""
        return query
