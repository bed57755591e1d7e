"""
Tests for the Event Store.

Tests cover:
- Raw inserts and listing order
- Insert-if-absent on fingerprint
- Status transitions
- Atomic unit rollback
- Per-client aggregates
- Savepoint fallback for insert-if-absent
"""

from datetime import timedelta

import pytest

from storage.event_store import AggregateFilter
from storage.repositories import normalized_events
from storage.models.events import RawEventStatus
from storage.repositories.exceptions import InvalidStatusTransitionError, RecordNotFoundError


def _fp(n: int) -> str:
    return f"{n:064x}"


def _seed(store, rows):
    for index, (client_id, amount, timestamp) in enumerate(rows):
        store.insert_normalized_if_absent(_fp(index), client_id, "m", amount, timestamp)


# =============================================================
# TEST: Raw events
# =============================================================

class TestRawEvents:
    """Test raw submission persistence."""

    def test_insert_raw_starts_received(self, store):
        raw_id = store.insert_raw("client_A", '{"source":"client_A"}')

        raw = store.get_raw(raw_id)
        assert raw.status == RawEventStatus.RECEIVED.value
        assert raw.raw_payload == '{"source":"client_A"}'
        assert raw.created_at is not None

    def test_insert_raw_accepts_null_source(self, store):
        raw_id = store.insert_raw(None, "{}")
        assert store.get_raw(raw_id).source is None

    def test_ids_increase(self, store):
        first = store.insert_raw("a", "{}")
        second = store.insert_raw("b", "{}")
        assert second > first

    def test_list_raw_newest_first(self, store):
        ids = [store.insert_raw(f"c{i}", "{}") for i in range(3)]

        listed = [row.id for row in store.list_raw()]
        assert listed == list(reversed(ids))

    def test_list_raw_limit(self, store):
        for i in range(5):
            store.insert_raw(f"c{i}", "{}")
        assert len(store.list_raw(limit=2)) == 2

    def test_get_unknown_raw(self, store):
        assert store.get_raw(999) is None


# =============================================================
# TEST: Status transitions
# =============================================================

class TestStatusTransitions:
    """RECEIVED moves to exactly one terminal status."""

    def test_mark_failed_keeps_message(self, store):
        raw_id = store.insert_raw("a", "{}")
        store.update_raw_status(raw_id, RawEventStatus.FAILED, "boom")

        raw = store.get_raw(raw_id)
        assert raw.status == "FAILED"
        assert raw.error_message == "boom"

    def test_mark_normalized_has_no_message(self, store):
        raw_id = store.insert_raw("a", "{}")
        store.update_raw_status(raw_id, RawEventStatus.NORMALIZED, "ignored")

        assert store.get_raw(raw_id).error_message is None

    def test_terminal_status_is_final(self, store):
        raw_id = store.insert_raw("a", "{}")
        store.update_raw_status(raw_id, RawEventStatus.NORMALIZED)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            store.update_raw_status(raw_id, RawEventStatus.FAILED, "late")

        assert exc_info.value.current_status == "NORMALIZED"
        assert store.get_raw(raw_id).status == "NORMALIZED"

    def test_cannot_move_back_to_received(self, store):
        raw_id = store.insert_raw("a", "{}")
        with pytest.raises(InvalidStatusTransitionError):
            store.update_raw_status(raw_id, RawEventStatus.RECEIVED)

    def test_unknown_id(self, store):
        with pytest.raises(RecordNotFoundError):
            store.update_raw_status(12345, RawEventStatus.FAILED, "x")

    def test_stale_received(self, store):
        raw_id = store.insert_raw("a", "{}")
        done_id = store.insert_raw("b", "{}")
        store.update_raw_status(done_id, RawEventStatus.NORMALIZED)

        assert store.list_stale_received(timedelta(minutes=5)) == []

        stale = store.list_stale_received(timedelta(seconds=-60))
        assert [row.id for row in stale] == [raw_id]


# =============================================================
# TEST: Normalized events
# =============================================================

class TestNormalizedEvents:
    """Insert-if-absent on fingerprint."""

    def test_insert_then_duplicate(self, store):
        assert store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None) is True
        assert store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None) is False
        assert store.count_normalized() == 1

    def test_duplicate_keeps_first_row(self, store):
        store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None, raw_event_id=1)
        store.insert_normalized_if_absent(_fp(1), "other", "x", 9, None, raw_event_id=2)

        rows = store.aggregate()
        assert [(r.client_id, r.count, r.total_amount) for r in rows] == [("c", 1, 5)]

    def test_atomic_rollback_discards_insert(self, store):
        raw_id = store.insert_raw("a", "{}")

        with pytest.raises(RuntimeError):
            with store.atomic() as unit:
                unit.insert_normalized_if_absent(_fp(7), "c", "m", 1, None, raw_id)
                unit.update_raw_status(raw_id, RawEventStatus.NORMALIZED)
                raise RuntimeError("abort")

        assert store.count_normalized() == 0
        assert store.get_raw(raw_id).status == "RECEIVED"


# =============================================================
# TEST: Aggregates
# =============================================================

class TestAggregates:
    """Per-client count and total."""

    ROWS = [
        ("client_A", 100, "2024-01-01T00:00:00.000Z"),
        ("client_A", 50, "2024-02-01T00:00:00.000Z"),
        ("client_B", 7, "2024-01-15T00:00:00.000Z"),
        ("client_B", 3, None),
    ]

    def test_all_clients(self, store):
        _seed(store, self.ROWS)

        rows = [row.to_dict() for row in store.aggregate()]
        assert rows == [
            {"client_id": "client_A", "count": 2, "total": 150},
            {"client_id": "client_B", "count": 2, "total": 10},
        ]

    def test_client_filter(self, store):
        _seed(store, self.ROWS)

        rows = store.aggregate(AggregateFilter(client_id="client_B"))
        assert [(r.client_id, r.count, r.total_amount) for r in rows] == [("client_B", 2, 10)]

    def test_range_is_inclusive(self, store):
        _seed(store, self.ROWS)

        rows = store.aggregate(AggregateFilter(
            from_timestamp="2024-01-01T00:00:00.000Z",
            to_timestamp="2024-01-15T00:00:00.000Z",
        ))
        assert [(r.client_id, r.count, r.total_amount) for r in rows] == [
            ("client_A", 1, 100),
            ("client_B", 1, 7),
        ]

    def test_single_bound_ignored(self, store):
        _seed(store, self.ROWS)

        rows = store.aggregate(AggregateFilter(from_timestamp="2030-01-01T00:00:00.000Z"))
        assert sum(r.count for r in rows) == 4

    def test_empty_store(self, store):
        assert store.aggregate() == []

    def test_unknown_client(self, store):
        _seed(store, self.ROWS)
        assert store.aggregate(AggregateFilter(client_id="nobody")) == []


# =============================================================
# TEST: Savepoint insert path
# =============================================================

class TestSavepointInsert:
    """insert_if_absent on dialects without ON CONFLICT support."""

    @pytest.fixture(autouse=True)
    def no_upsert_dialects(self, monkeypatch):
        monkeypatch.setattr(normalized_events, "_UPSERT_INSERTS", {})

    def test_insert_then_duplicate(self, store):
        assert store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None) is True
        assert store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None) is False
        assert store.count_normalized() == 1

    def test_duplicate_keeps_unit_usable(self, store):
        store.insert_normalized_if_absent(_fp(1), "c", "m", 5, None)
        raw_id = store.insert_raw("c", "{}")

        with store.atomic() as unit:
            assert unit.insert_normalized_if_absent(_fp(1), "c", "m", 5, None, raw_id) is False
            unit.update_raw_status(raw_id, RawEventStatus.NORMALIZED)

        assert store.get_raw(raw_id).status == "NORMALIZED"
        assert store.count_normalized() == 1
