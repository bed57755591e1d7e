"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The only code that issues SQL against the event tables.
Callers outside storage/ go through the EventStore facade.

============================================================
RULES
============================================================
1. One repository per table
2. Sessions are injected, never created here
3. Raw events are append-only apart from one status
   transition; normalized events are append-only
4. SQLAlchemy errors leave as RepositoryException subclasses

============================================================
REPOSITORIES
============================================================
- RawEventRepository: raw_events
- NormalizedEventRepository: normalized_events

============================================================
"""

from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    InvalidStatusTransitionError,
    QueryError,
    RecordNotFoundError,
    RepositoryConnectionError,
    RepositoryException,
)
from storage.repositories.normalized_events import ClientAggregate, NormalizedEventRepository
from storage.repositories.raw_events import RawEventRepository

__all__ = [
    "BaseRepository",
    "ClientAggregate",
    "NormalizedEventRepository",
    "RawEventRepository",
    "InvalidStatusTransitionError",
    "QueryError",
    "RecordNotFoundError",
    "RepositoryConnectionError",
    "RepositoryException",
]
