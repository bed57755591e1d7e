"""
Data Ingestion - Normalizers Package.

Normalizers convert raw submissions to canonical events.

Normalizers:
- event_normalizer: raw submission -> CanonicalEvent
"""

from .event_normalizer import (
    coerce_amount,
    format_timestamp,
    normalize_event,
    parse_timestamp,
    to_canonical_timestamp,
)

__all__ = [
    "coerce_amount",
    "format_timestamp",
    "normalize_event",
    "parse_timestamp",
    "to_canonical_timestamp",
]
