"""
Raw Event Repository.

============================================================
PURPOSE
============================================================
Repository for raw submissions: the first, auditable stage of
every ingest attempt.

============================================================
DATA LIFECYCLE
============================================================
- Stage: RAW
- Mutability: append-only plus ONE status transition
- Never delete raw events

============================================================
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.orm import Session

from storage.models.events import RawEvent, RawEventStatus
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    InvalidStatusTransitionError,
    RecordNotFoundError,
)


class RawEventRepository(BaseRepository[RawEvent]):
    """
    Repository for raw submissions.

    ============================================================
    STATUS TRANSITIONS
    ============================================================
    The status update is a conditional UPDATE guarded by
    status = 'RECEIVED', so a terminal status can never be
    overwritten, even by a concurrent writer.

    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, RawEvent, "RawEventRepository")

    # =========================================================
    # CREATE OPERATIONS
    # =========================================================

    def create_raw_event(self, source: Optional[str], raw_payload: str) -> RawEvent:
        """
        Create a new raw submission in RECEIVED status.

        Args:
            source: Origin label as supplied
            raw_payload: Serialized submission

        Returns:
            Created RawEvent with its id assigned
        """
        entity = RawEvent(
            source=source,
            raw_payload=raw_payload,
            status=RawEventStatus.RECEIVED.value,
        )
        return self._add(entity)

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def get_by_id(self, raw_event_id: int) -> Optional[RawEvent]:
        """Get raw event by ID."""
        return self._get_by_id(raw_event_id)

    def list_newest_first(self, limit: Optional[int] = None) -> List[RawEvent]:
        """
        List raw events ordered by creation time, newest first.

        Ties on created_at are broken by id so the order is total.
        """
        stmt = select(RawEvent).order_by(desc(RawEvent.created_at), desc(RawEvent.id))
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._scalars(stmt, "list")

    def list_by_status(
        self,
        status: RawEventStatus,
        created_before: Optional[datetime] = None,
    ) -> List[RawEvent]:
        """List raw events in one status, oldest first."""
        stmt = select(RawEvent).where(RawEvent.status == status.value)
        if created_before is not None:
            stmt = stmt.where(RawEvent.created_at < created_before)
        stmt = stmt.order_by(RawEvent.created_at, RawEvent.id)
        return self._scalars(stmt, "list")

    def count(self) -> int:
        return self._count()

    # =========================================================
    # STATUS OPERATIONS
    # =========================================================

    def update_status(
        self,
        raw_event_id: int,
        status: RawEventStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Move a RECEIVED raw event to a terminal status.

        Args:
            raw_event_id: Target row
            status: NORMALIZED or FAILED
            error_message: Stored only for FAILED

        Raises:
            RecordNotFoundError: No row with this id
            InvalidStatusTransitionError: Row already terminal,
                or the requested status is not terminal
        """
        if not status.is_terminal:
            raise InvalidStatusTransitionError(
                repository_name=self._repository_name,
                record_id=raw_event_id,
                current_status="?",
                requested_status=status.value,
            )

        stmt = (
            update(RawEvent)
            .where(RawEvent.id == raw_event_id)
            .where(RawEvent.status == RawEventStatus.RECEIVED.value)
            .values(
                status=status.value,
                error_message=error_message if status is RawEventStatus.FAILED else None,
            )
        )
        result = self._execute(stmt, "update_status", {"id": str(raw_event_id)})

        if result.rowcount == 1:
            self._logger.debug(f"Raw event {raw_event_id} -> {status.value}")
            return

        current = self._get_by_id(raw_event_id)
        if current is None:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                record_id=raw_event_id,
                operation="update_status",
            )
        raise InvalidStatusTransitionError(
            repository_name=self._repository_name,
            record_id=raw_event_id,
            current_status=current.status,
            requested_status=status.value,
        )
