"""
Data Ingestion - Fingerprint.

SHA-256 content hash of a canonical event, used as the
deduplication key of normalized_events.

Material is the UTF-8 encoding of

    client_id|metric|amount|timestamp

with a null timestamp written as the literal "null". The
layout is part of the stored data: changing it orphans every
existing fingerprint.
"""

import hashlib

from core.constants import FINGERPRINT_ALGORITHM, FINGERPRINT_DELIMITER, NULL_TIMESTAMP_TOKEN
from data_ingestion.types import CanonicalEvent


def fingerprint_material(event: CanonicalEvent) -> str:
    timestamp = event.timestamp if event.timestamp is not None else NULL_TIMESTAMP_TOKEN
    return FINGERPRINT_DELIMITER.join(
        (event.client_id, event.metric, str(event.amount), timestamp)
    )


def fingerprint_event(event: CanonicalEvent) -> str:
    """Hex digest of the event's fingerprint material."""
    material = fingerprint_material(event).encode("utf-8")
    return hashlib.new(FINGERPRINT_ALGORITHM, material).hexdigest()
