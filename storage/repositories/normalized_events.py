"""
Normalized Event Repository.

============================================================
PURPOSE
============================================================
Repository for canonical, deduplicated events and the
aggregate queries over them.

============================================================
DEDUPLICATION
============================================================
insert_if_absent is a single statement on SQLite and
PostgreSQL (INSERT ... ON CONFLICT (fingerprint) DO NOTHING).
Other dialects fall back to a SAVEPOINT around a plain
INSERT, catching the unique violation. Either way the
uniqueness check is enforced by the database.

============================================================
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.base import utcnow
from storage.models.events import NormalizedEvent
from storage.repositories.base import BaseRepository


_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


@dataclass(frozen=True)
class ClientAggregate:
    """One row of the per-client aggregate."""
    client_id: str
    count: int
    total_amount: int


class NormalizedEventRepository(BaseRepository[NormalizedEvent]):
    """
    Repository for normalized events.

    ============================================================
    IMMUTABILITY
    ============================================================
    Normalized events are APPEND-ONLY. The first row for a
    fingerprint wins; later duplicates are dropped.

    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, NormalizedEvent, "NormalizedEventRepository")

    # =========================================================
    # CREATE OPERATIONS
    # =========================================================

    def insert_if_absent(
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
            True if a new row was created, False for a duplicate
        """
        values = {
            "fingerprint": fingerprint,
            "client_id": client_id,
            "metric": metric,
            "amount": amount,
            "timestamp": timestamp,
            "raw_event_id": raw_event_id,
            "created_at": utcnow(),
        }

        dialect = self._session.get_bind().dialect.name
        insert_factory = _UPSERT_INSERTS.get(dialect)

        if insert_factory is None:
            return self._insert_with_savepoint(values)

        stmt = (
            insert_factory(NormalizedEvent)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["fingerprint"])
        )
        result = self._execute(stmt, "insert_if_absent", {"fingerprint": fingerprint})
        inserted = result.rowcount == 1

        self._logger.debug(
            f"insert_if_absent fingerprint={fingerprint[:12]} inserted={inserted}"
        )
        return inserted

    def _insert_with_savepoint(self, values: dict) -> bool:
        try:
            with self._session.begin_nested():
                self._session.add(NormalizedEvent(**values))
                self._session.flush()
        except SQLAlchemyIntegrityError:
            self._logger.debug(f"Duplicate fingerprint {values['fingerprint'][:12]}")
            return False
        except SQLAlchemyError as e:
            self._raise_wrapped(e, "insert_if_absent", {"fingerprint": values["fingerprint"]})
        return True

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def list_all(self) -> List[NormalizedEvent]:
        stmt = select(NormalizedEvent).order_by(NormalizedEvent.id)
        return self._scalars(stmt, "list_all")

    def count(self) -> int:
        return self._count()

    def aggregate_by_client(
        self,
        client_id: Optional[str] = None,
        from_timestamp: Optional[str] = None,
        to_timestamp: Optional[str] = None,
    ) -> List[ClientAggregate]:
        """
        Count and sum amounts per client.

        Args:
            client_id: Exact client filter
            from_timestamp: Inclusive lower bound (canonical ISO)
            to_timestamp: Inclusive upper bound (canonical ISO)

        The timestamp range only applies when BOTH bounds are
        given. Events with a null timestamp never match a range.
        """
        stmt = select(
            NormalizedEvent.client_id,
            func.count(NormalizedEvent.id),
            func.coalesce(func.sum(NormalizedEvent.amount), 0),
        )
        if client_id:
            stmt = stmt.where(NormalizedEvent.client_id == client_id)
        if from_timestamp and to_timestamp:
            stmt = stmt.where(NormalizedEvent.timestamp.between(from_timestamp, to_timestamp))
        stmt = stmt.group_by(NormalizedEvent.client_id).order_by(NormalizedEvent.client_id)

        rows = self._execute(stmt, "aggregate_by_client").all()
        return [
            ClientAggregate(client_id=row[0], count=int(row[1]), total_amount=int(row[2]))
            for row in rows
        ]
