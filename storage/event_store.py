"""
Storage - Event Store.

============================================================
RESPONSIBILITY
============================================================
Owns the raw_events and normalized_events relations and is
the only component that mutates them.

- Inserts raw submissions
- Inserts normalized events, deduplicated by fingerprint
- Reconciles raw submission status
- Serves list and aggregate reads

============================================================
TRANSACTIONS
============================================================
Every top-level method runs in its own transaction and is
committed before it returns. To group writes into one atomic
unit, use atomic():

    with store.atomic() as unit:
        inserted = unit.insert_normalized_if_absent(...)
        unit.update_raw_status(raw_id, RawEventStatus.NORMALIZED)
    # committed here; rolled back if the block raised

============================================================
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import StorageUnavailableError
from database.engine import Database, DatabasePersistenceError
from storage.models.base import utcnow
from storage.models.events import RawEvent, RawEventStatus
from storage.repositories.exceptions import RepositoryException
from storage.repositories.normalized_events import NormalizedEventRepository
from storage.repositories.raw_events import RawEventRepository

logger = logging.getLogger(__name__)


# =============================================================
# QUERY TYPES
# =============================================================

@dataclass(frozen=True)
class AggregateFilter:
    """
    Filter for aggregate reports.

    The timestamp range applies only when both bounds are set;
    a single bound is ignored.
    """
    client_id: Optional[str] = None
    from_timestamp: Optional[str] = None
    to_timestamp: Optional[str] = None

    @property
    def has_range(self) -> bool:
        return bool(self.from_timestamp) and bool(self.to_timestamp)


@dataclass(frozen=True)
class AggregateRow:
    """Per-client count and amount total."""
    client_id: str
    count: int
    total_amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "count": self.count,
            "total": self.total_amount,
        }


# =============================================================
# ATOMIC UNIT
# =============================================================

class StoreTransaction:
    """
    Mutating store operations bound to one open transaction.

    Obtained from EventStore.atomic(); never constructed
    directly. Nothing is visible to other sessions until the
    enclosing atomic() block exits cleanly.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._raw = RawEventRepository(session)
        self._normalized = NormalizedEventRepository(session)

    def insert_raw(self, source: Optional[str], raw_payload: str) -> int:
        entity = self._raw.create_raw_event(source, raw_payload)
        return entity.id

    def insert_normalized_if_absent(
        self,
        fingerprint: str,
        client_id: str,
        metric: str,
        amount: int,
        timestamp: Optional[str],
        raw_event_id: Optional[int] = None,
    ) -> bool:
        return self._normalized.insert_if_absent(
            fingerprint=fingerprint,
            client_id=client_id,
            metric=metric,
            amount=amount,
            timestamp=timestamp,
            raw_event_id=raw_event_id,
        )

    def update_raw_status(
        self,
        raw_event_id: int,
        status: RawEventStatus,
        error_message: Optional[str] = None,
    ) -> None:
        self._raw.update_status(raw_event_id, status, error_message)


# =============================================================
# EVENT STORE
# =============================================================

class EventStore:
    """
    Facade over the event repositories.

    ============================================================
    USAGE
    ============================================================
    ```python
    database = Database(config.database)
    store = EventStore(database)

    raw_id = store.insert_raw("client_A", '{"source": "client_A"}')
    store.update_raw_status(raw_id, RawEventStatus.FAILED, "boom")
    ```

    ============================================================
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @property
    def database(self) -> Database:
        return self._database

    @contextmanager
    def atomic(self) -> Generator[StoreTransaction, None, None]:
        """
        Open one atomic unit.

        Commits when the block exits cleanly. Any exception rolls
        the whole unit back and propagates; the session is closed
        on every path.
        """
        with self._database.transaction_scope() as session:
            yield StoreTransaction(session)

    # =========================================================
    # WRITE OPERATIONS
    # =========================================================

    def insert_raw(self, source: Optional[str], raw_payload: str) -> int:
        """
        Persist a raw submission in RECEIVED status.

        Returns:
            The new raw event id

        Raises:
            StorageUnavailableError: The row could not be written
        """
        try:
            with self.atomic() as unit:
                raw_event_id = unit.insert_raw(source, raw_payload)
        except (RepositoryException, DatabasePersistenceError) as e:
            logger.error(f"Persist raw_events: inserted=0 | reason={e}")
            raise StorageUnavailableError(
                "Raw insert failed",
                context={"source": source},
                cause=e,
            ) from e

        logger.info(f"Persist raw_events: inserted=1 (id={raw_event_id}, source={source})")
        return raw_event_id

    def insert_normalized_if_absent(
        self,
        fingerprint: str,
        client_id: str,
        metric: str,
        amount: int,
        timestamp: Optional[str],
        raw_event_id: Optional[int] = None,
    ) -> bool:
        """
        Insert a normalized event unless its fingerprint exists.

        Returns:
            True if a row was created, False for a duplicate
        """
        with self.atomic() as unit:
            return unit.insert_normalized_if_absent(
                fingerprint, client_id, metric, amount, timestamp, raw_event_id
            )

    def update_raw_status(
        self,
        raw_event_id: int,
        status: RawEventStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Set a terminal status on a raw submission.

        Raises:
            RecordNotFoundError: Unknown raw_event_id
            InvalidStatusTransitionError: Row is already terminal
        """
        with self.atomic() as unit:
            unit.update_raw_status(raw_event_id, status, error_message)

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def get_raw(self, raw_event_id: int) -> Optional[RawEvent]:
        with self._database.read_scope() as session:
            return RawEventRepository(session).get_by_id(raw_event_id)

    def list_raw(self, limit: Optional[int] = None) -> List[RawEvent]:
        """All raw submissions, newest first."""
        with self._database.read_scope() as session:
            return RawEventRepository(session).list_newest_first(limit)

    def list_stale_received(self, older_than: timedelta) -> List[RawEvent]:
        """
        Raw submissions still RECEIVED after older_than.

        These are attempts interrupted mid-unit (process crash).
        Reported only; nothing repairs them automatically.
        """
        cutoff: datetime = utcnow() - older_than
        with self._database.read_scope() as session:
            return RawEventRepository(session).list_by_status(
                RawEventStatus.RECEIVED, created_before=cutoff
            )

    def count_normalized(self) -> int:
        with self._database.read_scope() as session:
            return NormalizedEventRepository(session).count()

    def aggregate(self, filter: Optional[AggregateFilter] = None) -> List[AggregateRow]:
        """
        Count and total amount per client over normalized events.

        Args:
            filter: Optional client and inclusive timestamp range
        """
        filter = filter or AggregateFilter()
        with self._database.read_scope() as session:
            rows = NormalizedEventRepository(session).aggregate_by_client(
                client_id=filter.client_id,
                from_timestamp=filter.from_timestamp if filter.has_range else None,
                to_timestamp=filter.to_timestamp if filter.has_range else None,
            )
        return [
            AggregateRow(client_id=row.client_id, count=row.count, total_amount=row.total_amount)
            for row in rows
        ]
