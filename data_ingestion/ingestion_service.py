"""
Data Ingestion - Ingestion Service.

============================================================
RESPONSIBILITY
============================================================
Coordinates one ingest attempt end to end.

- Persists the raw submission
- Normalizes and fingerprints it
- Inserts the normalized event, deduplicated
- Reconciles the raw submission's status
- Reports the outcome and keeps counters

============================================================
WORKFLOW
============================================================
1. STARTED
2. Raw insert, committed on its own -> RAW_INSERTED
   (failure: storage unavailable, nothing to mark)
3. Normalize + fingerprint
4. Atomic unit: fault check, insert-if-absent
   -> NORMALIZED_ATTEMPTED
5. Same unit: raw status NORMALIZED, commit -> COMMITTED
6. Any failure in 3-5: the unit rolls back, then the raw
   row is marked FAILED in a separate transaction
   -> ROLLED_BACK

The raw row is committed before the unit opens, so a
rollback can only undo the normalized side. The FAILED
write never shares a session with the rolled-back unit.

============================================================
"""

import logging
import threading
from typing import Optional

from chaos_testing.fault_injection import FaultInjector, FaultPoint
from core.config import IngestConfig
from core.exceptions import IngestException, StatusReconciliationError, StorageUnavailableError
from data_ingestion.fingerprint import fingerprint_event
from data_ingestion.normalizers.event_normalizer import normalize_event
from data_ingestion.types import (
    IngestionMetrics,
    IngestResult,
    IngestState,
    RawEventInput,
)
from database.engine import DatabasePersistenceError
from storage.event_store import EventStore
from storage.models.events import RawEventStatus
from storage.repositories.exceptions import RepositoryException


class IngestionService:
    """
    Ingest coordinator.

    ============================================================
    USAGE
    ============================================================
    ```python
    service = IngestionService(EventStore(database))
    result = service.ingest(RawEventInput.from_dict(body))
    if not result.success:
        print(result.error_message)
    ```

    ============================================================
    """

    def __init__(
        self,
        store: EventStore,
        fault_injector: Optional[FaultInjector] = None,
    ) -> None:
        self._store = store
        self._fault_injector = fault_injector or FaultInjector()
        self._metrics = IngestionMetrics()
        self._metrics_lock = threading.Lock()
        self._logger = logging.getLogger("ingestion_service")

    @classmethod
    def from_config(cls, store: EventStore, config: IngestConfig) -> "IngestionService":
        return cls(store, FaultInjector.from_config(config))

    @property
    def store(self) -> EventStore:
        return self._store

    # =========================================================
    # INGEST
    # =========================================================

    def ingest(self, submission: RawEventInput, inject_failure: bool = False) -> IngestResult:
        """
        Run one ingest attempt.

        Never raises for pipeline failures; the outcome is in
        the returned IngestResult.

        Args:
            submission: Raw submission
            inject_failure: Request a deterministic failure at
                the normalized insert

        Returns:
            IngestResult with the final state
        """
        self._count("total_attempts")
        state = IngestState.STARTED

        try:
            raw_event_id = self._store.insert_raw(submission.source, submission.serialize())
        except StorageUnavailableError as e:
            self._logger.error(
                f"Ingest aborted before raw insert: {e.message}",
                extra={"error": e.to_dict()},
            )
            self._count("storage_unavailable", error=e.message)
            return IngestResult(success=False, state=state, error_message=e.message)

        state = IngestState.RAW_INSERTED
        self._logger.debug(f"Raw event {raw_event_id}: {state.value}")

        fingerprint: Optional[str] = None
        duplicate = False
        try:
            canonical = normalize_event(submission)
            fingerprint = fingerprint_event(canonical)

            with self._store.atomic() as unit:
                state = IngestState.NORMALIZED_ATTEMPTED
                self._fault_injector.check(FaultPoint.NORMALIZED_INSERT, requested=inject_failure)
                inserted = unit.insert_normalized_if_absent(
                    fingerprint=fingerprint,
                    client_id=canonical.client_id,
                    metric=canonical.metric,
                    amount=canonical.amount,
                    timestamp=canonical.timestamp,
                    raw_event_id=raw_event_id,
                )
                duplicate = not inserted
                unit.update_raw_status(raw_event_id, RawEventStatus.NORMALIZED)
        except Exception as e:
            return self._fail(raw_event_id, state, fingerprint, e)

        state = IngestState.COMMITTED
        self._count("committed")
        if duplicate:
            self._count("duplicates")

        self._logger.info(
            f"Ingest committed: raw_event_id={raw_event_id} "
            f"fingerprint={fingerprint[:12]} duplicate={duplicate}"
        )
        return IngestResult(
            success=True,
            state=state,
            raw_event_id=raw_event_id,
            raw_status=RawEventStatus.NORMALIZED,
            fingerprint=fingerprint,
            duplicate=duplicate,
        )

    def _fail(
        self,
        raw_event_id: int,
        state: IngestState,
        fingerprint: Optional[str],
        error: Exception,
    ) -> IngestResult:
        error_message = _error_text(error)
        self._logger.error(
            f"Ingest failed at {state.value} for raw_event_id={raw_event_id}: {error_message}",
            exc_info=not isinstance(error, IngestException),
            extra={"error": error.to_dict()} if isinstance(error, IngestException) else {},
        )
        self._count("failed", error=error_message)

        try:
            self._store.update_raw_status(raw_event_id, RawEventStatus.FAILED, error_message)
        except (RepositoryException, DatabasePersistenceError) as e:
            reconcile_error = StatusReconciliationError(raw_event_id, str(e), cause=e)
            self._logger.critical(reconcile_error.message, extra={"error": reconcile_error.to_dict()})
            self._count("reconciliation_errors", error=reconcile_error.message)
            return IngestResult(
                success=False,
                state=IngestState.ROLLED_BACK,
                raw_event_id=raw_event_id,
                raw_status=None,
                fingerprint=fingerprint,
                error_message=reconcile_error.message,
            )

        return IngestResult(
            success=False,
            state=IngestState.ROLLED_BACK,
            raw_event_id=raw_event_id,
            raw_status=RawEventStatus.FAILED,
            fingerprint=fingerprint,
            error_message=error_message,
        )

    # =========================================================
    # METRICS
    # =========================================================

    def _count(self, counter: str, error: Optional[str] = None) -> None:
        with self._metrics_lock:
            setattr(self._metrics, counter, getattr(self._metrics, counter) + 1)
            if error is not None:
                self._metrics.last_error = error

    def get_metrics(self) -> IngestionMetrics:
        """Snapshot of the running counters."""
        with self._metrics_lock:
            return IngestionMetrics(**self._metrics.to_dict())


def _error_text(error: Exception) -> str:
    if isinstance(error, IngestException):
        return error.message
    text = str(error)
    return text if text else type(error).__name__
