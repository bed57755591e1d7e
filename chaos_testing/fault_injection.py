"""
Chaos Testing - Fault Injection.

============================================================
RESPONSIBILITY
============================================================
Injects controlled, deterministic faults into the ingest
pipeline to exercise the rollback and status-reconciliation
path.

============================================================
DESIGN PRINCIPLES
============================================================
- Deterministic: a requested fault always fires
- Controlled: per-request flags can be disabled by config
- Drill mode: force_failure fails every attempt
- Every injection is logged

============================================================
FAULT POINTS
============================================================
- NORMALIZED_INSERT: just before the deduplicated insert,
  inside the atomic unit

============================================================
"""

import logging
import threading
from enum import Enum

from core.config import IngestConfig
from core.exceptions import InjectedFailureError

logger = logging.getLogger(__name__)


class FaultPoint(str, Enum):
    """Places in the pipeline where a fault can be injected."""
    NORMALIZED_INSERT = "normalized_insert"


class FaultInjector:
    """
    Decides whether an ingest attempt fails on purpose.

    ```python
    injector = FaultInjector(enabled=True)
    injector.check(FaultPoint.NORMALIZED_INSERT, requested=True)
    # raises InjectedFailureError("Simulated DB failure")
    ```
    """

    def __init__(self, enabled: bool = True, force_failure: bool = False) -> None:
        self._enabled = enabled
        self._force_failure = force_failure
        self._injected_count = 0
        self._count_lock = threading.Lock()

        if force_failure:
            logger.warning("Fault injection drill active: every ingest attempt will fail")

    @classmethod
    def from_config(cls, config: IngestConfig) -> "FaultInjector":
        return cls(
            enabled=config.fault_injection_enabled,
            force_failure=config.force_failure,
        )

    @property
    def injected_count(self) -> int:
        with self._count_lock:
            return self._injected_count

    def should_fail(self, requested: bool) -> bool:
        if self._force_failure:
            return True
        if requested and not self._enabled:
            logger.warning("Fault injection requested but disabled by configuration; ignoring")
            return False
        return requested

    def check(self, point: FaultPoint, requested: bool = False) -> None:
        """
        Raise InjectedFailureError if this point should fail.

        Raises:
            InjectedFailureError: Fault fired
        """
        if not self.should_fail(requested):
            return

        with self._count_lock:
            self._injected_count += 1
            total = self._injected_count
        logger.info(f"Injecting fault at {point.value} (total={total})")
        raise InjectedFailureError(fault_point=point.value)
