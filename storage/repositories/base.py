"""
Base Repository Class.

============================================================
CONTRACT
============================================================
- One repository per event table, bound to one Session
- Repositories flush, never commit: EventStore.atomic()
  decides commit or rollback
- Every SQLAlchemyError is logged once here and re-raised
  as a RepositoryException

============================================================
"""

import logging
from abc import ABC
from typing import Any, Generic, List, NoReturn, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.engine import Result
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import QueryError, RepositoryConnectionError


T = TypeVar("T", bound=Base)


class BaseRepository(ABC, Generic[T]):
    """
    Shared plumbing for the event repositories.

    ```python
    class RawEventRepository(BaseRepository[RawEvent]):
        def __init__(self, session: Session):
            super().__init__(session, RawEvent, "RawEventRepository")
    ```
    """

    def __init__(self, session: Session, model_class: Type[T], repository_name: str) -> None:
        self._session = session
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    def _raise_wrapped(
        self,
        error: SQLAlchemyError,
        operation: str,
        context: Optional[dict] = None
    ) -> NoReturn:
        self._logger.error(
            f"{operation} failed on {self._model_class.__tablename__}: {error}",
            extra={"context": context or {}},
        )
        if isinstance(error, OperationalError):
            raise RepositoryConnectionError(self._repository_name, operation, str(error)) from error
        raise QueryError(self._repository_name, operation, str(error)) from error

    def _add(self, entity: T) -> T:
        """Add and flush, so the primary key is populated."""
        try:
            self._session.add(entity)
            self._session.flush()
        except SQLAlchemyError as e:
            self._raise_wrapped(e, "add")
        return entity

    def _get_by_id(self, record_id: int) -> Optional[T]:
        try:
            return self._session.get(self._model_class, record_id)
        except SQLAlchemyError as e:
            self._raise_wrapped(e, "get_by_id", {"id": record_id})

    def _count(self) -> int:
        stmt = select(func.count()).select_from(self._model_class)
        return self._execute(stmt, "count").scalar() or 0

    def _execute(self, stmt: Any, operation: str, context: Optional[dict] = None) -> Result:
        try:
            return self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._raise_wrapped(e, operation, context)

    def _scalars(self, stmt: Any, operation: str) -> List[T]:
        """Execute a select of entities and return them as a list."""
        return list(self._execute(stmt, operation).scalars().all())
