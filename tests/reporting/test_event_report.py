"""
Tests for the reporting service.
"""

from datetime import timedelta

from data_ingestion.types import RawEventInput
from reporting.event_report import ReportingService


def _submit(service, client_id, amount, timestamp):
    body = {"source": client_id, "payload": {"metric": "m", "amount": amount, "timestamp": timestamp}}
    return service.ingest(RawEventInput.from_dict(body))


class TestReportingService:
    """Read side over ingested events."""

    def test_bounds_are_canonicalized(self, service, reports):
        _submit(service, "client_A", 10, "2024-01-01T12:00:00Z")
        _submit(service, "client_A", 20, "2024-03-01T12:00:00Z")

        rows = reports.aggregate(from_timestamp="2024-01-01", to_timestamp="2024-01-31")

        assert [row.to_dict() for row in rows] == [
            {"client_id": "client_A", "count": 1, "total": 10},
        ]

    def test_offset_bounds(self, service, reports):
        _submit(service, "client_A", 10, "2024-01-01T00:30:00Z")

        # 2024-01-01T02:00+02:00 is midnight UTC
        rows = reports.aggregate(
            from_timestamp="2024-01-01T02:00:00+02:00",
            to_timestamp="2024-01-01T03:00:00+02:00",
        )
        assert rows[0].count == 1

    def test_empty_client_means_all(self, service, reports):
        _submit(service, "client_A", 1, None)
        _submit(service, "client_B", 2, None)

        assert len(reports.aggregate(client_id="")) == 2

    def test_raw_submissions(self, service, reports):
        result = _submit(service, "client_A", 1, None)

        assert reports.get_raw_submission(result.raw_event_id).status == "NORMALIZED"
        assert [row.id for row in reports.list_raw_submissions()] == [result.raw_event_id]

    def test_stale_received(self, store):
        store.insert_raw("client_A", "{}")

        assert ReportingService(store).stale_received() == []
        assert len(ReportingService(store, stale_after=timedelta(seconds=-60)).stale_received()) == 1
