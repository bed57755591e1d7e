"""
Event Domain ORM Models.

============================================================
PURPOSE
============================================================
Models for the two relations owned by the event store:
raw submissions and normalized, deduplicated events.

============================================================
DATA LIFECYCLE ROLE
============================================================
raw_events
- Stage: RAW
- Mutability: append-only, except for one terminal status
  transition (RECEIVED -> NORMALIZED | FAILED)
- Source: ingest requests, stored verbatim
- Consumers: audit, event listing

normalized_events
- Stage: NORMALIZED
- Mutability: IMMUTABLE
- Source: normalizer + fingerprinter
- Consumers: aggregate reporting

============================================================
MODELS
============================================================
- RawEvent: One row per ingest attempt
- NormalizedEvent: One row per distinct fingerprint

============================================================
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import (
    FINGERPRINT_LENGTH,
    NORMALIZED_EVENTS_TABLE,
    RAW_EVENTS_TABLE,
)
from storage.models.base import Base, CreatedAtMixin


class RawEventStatus(str, Enum):
    """Processing status of a raw submission."""
    RECEIVED = "RECEIVED"
    NORMALIZED = "NORMALIZED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not RawEventStatus.RECEIVED


class RawEvent(Base, CreatedAtMixin):
    """
    Raw submission exactly as received.

    ============================================================
    PURPOSE
    ============================================================
    Audit record of every ingest attempt. The row survives
    every downstream failure; only its status records what
    happened to it.

    ============================================================
    STATUS
    ============================================================
    - RECEIVED: written, processing not finished
    - NORMALIZED: normalized insert committed (or duplicate)
    - FAILED: processing failed, see error_message

    A row still RECEIVED after a restart marks an attempt
    interrupted mid-unit.

    ============================================================
    """

    __tablename__ = RAW_EVENTS_TABLE

    # Primary Key
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-assigned raw submission identifier"
    )

    # Source Identification
    source: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Origin label as supplied, unvalidated"
    )

    # Raw Payload
    raw_payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Complete submission serialized verbatim"
    )

    # Processing Status
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RawEventStatus.RECEIVED.value,
        comment="RECEIVED | NORMALIZED | FAILED"
    )

    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Failure reason, set only when status is FAILED"
    )

    __table_args__ = (
        Index("idx_raw_events_created_at", "created_at"),
        Index("idx_raw_events_status", "status"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "raw_payload": self.raw_payload,
            "status": self.status,
            "error_message": self.error_message,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"RawEvent(id={self.id}, source={self.source!r}, status={self.status})"


class NormalizedEvent(Base, CreatedAtMixin):
    """
    Canonical, deduplicated event.

    ============================================================
    DEDUPLICATION
    ============================================================
    fingerprint is UNIQUE. Inserts go through
    INSERT ... ON CONFLICT DO NOTHING, so a duplicate is a
    no-op enforced by the database, never a read-then-write.

    ============================================================
    TRACEABILITY
    ============================================================
    raw_event_id: raw submission that first produced this row.
    Later duplicates do not update it.

    ============================================================
    """

    __tablename__ = NORMALIZED_EVENTS_TABLE

    # Primary Key
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-assigned normalized event identifier"
    )

    # Deduplication
    fingerprint: Mapped[str] = mapped_column(
        String(FINGERPRINT_LENGTH),
        nullable=False,
        comment="SHA-256 of (client_id, metric, amount, timestamp)"
    )

    # Canonical Fields
    client_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Normalized source label"
    )

    metric: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Metric name"
    )

    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Metric amount coerced to integer"
    )

    timestamp: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        comment="Canonical UTC ISO timestamp, null if unparseable"
    )

    # Traceability
    raw_event_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Raw submission that first produced this event"
    )

    __table_args__ = (
        UniqueConstraint("fingerprint", name="uq_normalized_events_fingerprint"),
        Index("idx_normalized_events_client_id", "client_id"),
        Index("idx_normalized_events_timestamp", "timestamp"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fingerprint": self.fingerprint,
            "client_id": self.client_id,
            "metric": self.metric,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "raw_event_id": self.raw_event_id,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return (
            f"NormalizedEvent(id={self.id}, client_id={self.client_id!r}, "
            f"metric={self.metric!r}, amount={self.amount})"
        )
