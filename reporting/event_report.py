"""
Reporting - Event Report.

============================================================
RESPONSIBILITY
============================================================
Read-only reports over the event store.

- Raw submission listing (newest first)
- Per-client aggregates over normalized events
- Stale RECEIVED submissions (interrupted attempts)

============================================================
DESIGN PRINCIPLES
============================================================
- Never mutates the store
- Range bounds are canonicalized with the same parser as
  event timestamps, so "2024-01-01" matches the stored
  "2024-01-01T00:00:00.000Z". Unparseable bounds are
  compared verbatim.
- A range applies only when both bounds are given

============================================================
"""

import logging
from datetime import timedelta
from typing import List, Optional

from data_ingestion.normalizers.event_normalizer import to_canonical_timestamp
from storage.event_store import AggregateFilter, AggregateRow, EventStore
from storage.models.events import RawEvent

logger = logging.getLogger(__name__)


def _canonical_bound(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return to_canonical_timestamp(value) or value


class ReportingService:
    """Read-only reporting over an EventStore."""

    def __init__(self, store: EventStore, stale_after: timedelta = timedelta(minutes=5)) -> None:
        self._store = store
        self._stale_after = stale_after

    def list_raw_submissions(self, limit: Optional[int] = None) -> List[RawEvent]:
        return self._store.list_raw(limit)

    def get_raw_submission(self, raw_event_id: int) -> Optional[RawEvent]:
        return self._store.get_raw(raw_event_id)

    def aggregate(
        self,
        client_id: Optional[str] = None,
        from_timestamp: Optional[str] = None,
        to_timestamp: Optional[str] = None,
    ) -> List[AggregateRow]:
        """
        Count and total amount per client.

        Args:
            client_id: Exact client filter
            from_timestamp: Inclusive lower bound
            to_timestamp: Inclusive upper bound
        """
        filter = AggregateFilter(
            client_id=client_id or None,
            from_timestamp=_canonical_bound(from_timestamp),
            to_timestamp=_canonical_bound(to_timestamp),
        )
        if (filter.from_timestamp or filter.to_timestamp) and not filter.has_range:
            logger.debug("Aggregate range ignored: both from and to are required")

        return self._store.aggregate(filter)

    def stale_received(self) -> List[RawEvent]:
        """Submissions left RECEIVED longer than stale_after."""
        stale = self._store.list_stale_received(self._stale_after)
        if stale:
            logger.warning(f"{len(stale)} raw events still RECEIVED after {self._stale_after}")
        return stale
