"""
Tests for event fingerprints.
"""

import hashlib

from data_ingestion.fingerprint import fingerprint_event, fingerprint_material
from data_ingestion.types import CanonicalEvent


class TestFingerprint:
    """Test fingerprint material and hashing."""

    def test_material_layout(self):
        event = CanonicalEvent("client_A", "purchase", 1200, "2024-01-01T00:00:00.000Z")
        assert fingerprint_material(event) == "client_A|purchase|1200|2024-01-01T00:00:00.000Z"

    def test_null_timestamp_token(self):
        event = CanonicalEvent("unknown", "unknown", 0, None)
        assert fingerprint_material(event) == "unknown|unknown|0|null"

    def test_hex_sha256(self):
        event = CanonicalEvent("c", "m", 1, None)
        expected = hashlib.sha256(b"c|m|1|null").hexdigest()

        assert fingerprint_event(event) == expected
        assert len(fingerprint_event(event)) == 64

    def test_equal_events_equal_fingerprints(self):
        a = CanonicalEvent("c", "m", 1, "2024-01-01T00:00:00.000Z")
        b = CanonicalEvent("c", "m", 1, "2024-01-01T00:00:00.000Z")
        assert fingerprint_event(a) == fingerprint_event(b)

    def test_any_field_changes_fingerprint(self):
        base = CanonicalEvent("c", "m", 1, None)
        variants = [
            CanonicalEvent("d", "m", 1, None),
            CanonicalEvent("c", "n", 1, None),
            CanonicalEvent("c", "m", 2, None),
            CanonicalEvent("c", "m", 1, "2024-01-01T00:00:00.000Z"),
        ]
        for variant in variants:
            assert fingerprint_event(variant) != fingerprint_event(base)
