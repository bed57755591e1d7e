"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the ingest pipeline.

- Typed raw submission (optional fields, verbatim body kept)
- Canonical event produced by the normalizer
- Ingest attempt states and results

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Clear typing for all fields
- No business logic beyond shape conversion
- Serializable for logging and the API

============================================================
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from storage.models.events import RawEventStatus


# =============================================================
# ENUMS
# =============================================================

class IngestState(str, Enum):
    """Progress of one ingest attempt."""
    STARTED = "started"
    RAW_INSERTED = "raw_inserted"
    NORMALIZED_ATTEMPTED = "normalized_attempted"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


# =============================================================
# INPUT TYPES
# =============================================================

@dataclass(frozen=True)
class EventPayload:
    """
    Declared event fields, exactly as submitted.

    Every field is optional and untyped on purpose: coercion
    happens in the normalizer, which downgrades bad values to
    sentinels instead of rejecting them.
    """
    metric: Any = None
    amount: Any = None
    timestamp: Any = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["EventPayload"]:
        if not isinstance(value, dict):
            return None
        return cls(
            metric=value.get("metric"),
            amount=value.get("amount"),
            timestamp=value.get("timestamp"),
        )


@dataclass(frozen=True)
class RawEventInput:
    """
    One raw submission.

    body holds the complete submission as received; it is what
    gets persisted as raw_payload, so unknown keys survive.
    """
    source: Optional[str] = None
    payload: Optional[EventPayload] = None
    body: Any = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, body: Any) -> "RawEventInput":
        """
        Build from a decoded JSON body.

        Non-object bodies are accepted and keep no source or
        payload; they normalize to all-sentinel events.
        """
        if not isinstance(body, dict):
            return cls(source=None, payload=None, body=body)

        source = body.get("source")
        if source is not None and not isinstance(source, str):
            source = str(source)

        return cls(
            source=source,
            payload=EventPayload.from_value(body.get("payload")),
            body=body,
        )

    def serialize(self) -> str:
        """Compact JSON of the submission, keys in received order."""
        body = self.body
        if body is None:
            body = {"source": self.source}
            if self.payload is not None:
                body["payload"] = {
                    "metric": self.payload.metric,
                    "amount": self.payload.amount,
                    "timestamp": self.payload.timestamp,
                }
        return json.dumps(body, separators=(",", ":"), ensure_ascii=False, default=str)


# =============================================================
# CANONICAL EVENT
# =============================================================

@dataclass(frozen=True)
class CanonicalEvent:
    """Normalized event; every field already coerced."""
    client_id: str
    metric: str
    amount: int
    timestamp: Optional[str]

    def as_tuple(self) -> Tuple[str, str, int, Optional[str]]:
        return (self.client_id, self.metric, self.amount, self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "metric": self.metric,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


# =============================================================
# RESULT TYPES
# =============================================================

@dataclass
class IngestResult:
    """Outcome of a single ingest attempt."""
    success: bool
    state: IngestState
    raw_event_id: Optional[int] = None
    raw_status: Optional[RawEventStatus] = None
    fingerprint: Optional[str] = None
    duplicate: bool = False
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "state": self.state.value,
            "raw_event_id": self.raw_event_id,
            "raw_status": self.raw_status.value if self.raw_status else None,
            "fingerprint": self.fingerprint,
            "duplicate": self.duplicate,
            "error_message": self.error_message,
        }


@dataclass
class IngestionMetrics:
    """Running counters for the ingestion service."""
    total_attempts: int = 0
    committed: int = 0
    duplicates: int = 0
    failed: int = 0
    storage_unavailable: int = 0
    reconciliation_errors: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_attempts": self.total_attempts,
            "committed": self.committed,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "storage_unavailable": self.storage_unavailable,
            "reconciliation_errors": self.reconciliation_errors,
            "last_error": self.last_error,
        }
