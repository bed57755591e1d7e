"""
Data Ingestion Package.

This package turns raw submissions into stored events.

Modules:
- types: Input, canonical and result types
- normalizers: Raw submission -> canonical event
- fingerprint: Canonical event -> dedup key

Main service:
- ingestion_service: Coordinates one ingest attempt
"""

from data_ingestion.fingerprint import fingerprint_event
from data_ingestion.ingestion_service import IngestionService
from data_ingestion.normalizers import normalize_event
from data_ingestion.types import (
    CanonicalEvent,
    EventPayload,
    IngestionMetrics,
    IngestResult,
    IngestState,
    RawEventInput,
)


__all__ = [
    # Service
    "IngestionService",
    # Pipeline steps
    "normalize_event",
    "fingerprint_event",
    # Types
    "CanonicalEvent",
    "EventPayload",
    "IngestionMetrics",
    "IngestResult",
    "IngestState",
    "RawEventInput",
]
