"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Errors raised by the event repositories. SQLAlchemy errors
never leave storage/repositories unwrapped:

- OperationalError (locked file, lost connection)
  -> RepositoryConnectionError
- any other SQLAlchemyError -> QueryError

The two status errors are raised by RawEventRepository
itself, never by the database.

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """Base class; the ingest service catches this one."""

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[dict] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(f"[{repository_name}] {operation}: {message}")


class RepositoryConnectionError(RepositoryException):
    """The database could not be reached or was locked."""

    def __init__(self, repository_name: str, operation: str, original_error: str) -> None:
        super().__init__(
            message=f"Database unavailable: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class QueryError(RepositoryException):
    """A statement was rejected (constraint, missing table, bad value)."""

    def __init__(self, repository_name: str, operation: str, original_error: str) -> None:
        super().__init__(
            message=f"Statement failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class RecordNotFoundError(RepositoryException):
    """
    A status update targeted a raw event id that does not exist.

    The store issued every id it is asked about, so this is an
    internal-consistency fault, not a client error.
    """

    def __init__(self, repository_name: str, record_id: Any, operation: str) -> None:
        super().__init__(
            message=f"No raw event with id={record_id}",
            repository_name=repository_name,
            operation=operation,
            details={"raw_event_id": str(record_id)}
        )
        self.record_id = record_id


class InvalidStatusTransitionError(RepositoryException):
    """
    Raised when a raw event status change is not allowed.

    Raw events move RECEIVED -> NORMALIZED or RECEIVED -> FAILED
    exactly once. Terminal statuses never change again.
    """

    def __init__(
        self,
        repository_name: str,
        record_id: Any,
        current_status: str,
        requested_status: str
    ) -> None:
        super().__init__(
            message=(
                f"Cannot move record {record_id} from {current_status} "
                f"to {requested_status}"
            ),
            repository_name=repository_name,
            operation="update_status",
            details={
                "record_id": str(record_id),
                "current_status": current_status,
                "requested_status": requested_status,
            }
        )
        self.record_id = record_id
        self.current_status = current_status
        self.requested_status = requested_status
