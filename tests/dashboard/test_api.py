"""
Tests for the ingest HTTP API.

Tests cover:
- POST /api/ingest success, duplicate and injected failure
- GET /api/events listing and lookup
- GET /api/aggregates filters
- GET /api/health
"""

import json

from database.engine import DatabaseConnectionError


# =============================================================
# TEST: Ingest
# =============================================================

class TestIngestEndpoint:
    """POST /api/ingest."""

    def test_ingest_processed(self, client, sample_submission):
        response = client.post("/api/ingest", json=sample_submission)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "processed"
        assert data["duplicate"] is False
        assert isinstance(data["raw_event_id"], int)

    def test_duplicate_is_still_processed(self, client, sample_submission):
        client.post("/api/ingest", json=sample_submission)
        response = client.post("/api/ingest", json=sample_submission)

        assert response.status_code == 200
        assert response.json()["duplicate"] is True

    def test_injected_failure(self, client, sample_submission):
        response = client.post("/api/ingest?fail=true", json=sample_submission)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Simulated DB failure"

        event = client.get(f"/api/events/{body['raw_event_id']}").json()
        assert event["status"] == "FAILED"
        assert event["error_message"] == "Simulated DB failure"

        assert client.get("/api/aggregates").json() == []

    def test_malformed_fields_accepted(self, client):
        response = client.post("/api/ingest", json={"payload": {"amount": "lots"}})

        assert response.status_code == 200
        assert client.get("/api/aggregates").json() == [
            {"client_id": "unknown", "count": 1, "total": 0},
        ]

    def test_non_object_body_accepted(self, client):
        response = client.post("/api/ingest", json=[1, 2, 3])

        assert response.status_code == 200
        event = client.get(f"/api/events/{response.json()['raw_event_id']}").json()
        assert json.loads(event["raw_payload"]) == [1, 2, 3]
        assert event["source"] is None

    def test_invalid_json_rejected(self, client):
        response = client.post(
            "/api/ingest",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422


# =============================================================
# TEST: Events
# =============================================================

class TestEventsEndpoint:
    """GET /api/events."""

    def test_newest_first(self, client):
        ids = [
            client.post("/api/ingest", json={"source": f"c{i}"}).json()["raw_event_id"]
            for i in range(3)
        ]

        listed = [row["id"] for row in client.get("/api/events").json()]
        assert listed == list(reversed(ids))

    def test_includes_failed_and_normalized(self, client, sample_submission):
        client.post("/api/ingest", json=sample_submission)
        client.post("/api/ingest?fail=true", json=sample_submission)

        statuses = [row["status"] for row in client.get("/api/events").json()]
        assert statuses == ["FAILED", "NORMALIZED"]

    def test_limit(self, client):
        for i in range(3):
            client.post("/api/ingest", json={"source": f"c{i}"})
        assert len(client.get("/api/events?limit=2").json()) == 2

    def test_unknown_event(self, client):
        assert client.get("/api/events/9999").status_code == 404


# =============================================================
# TEST: Aggregates
# =============================================================

class TestAggregatesEndpoint:
    """GET /api/aggregates."""

    def _ingest(self, client, source, amount, timestamp):
        client.post("/api/ingest", json={
            "source": source,
            "payload": {"metric": "purchase", "amount": amount, "timestamp": timestamp},
        })

    def test_aggregates(self, client):
        self._ingest(client, "client_A", 100, "2024-01-01T00:00:00Z")
        self._ingest(client, "client_A", 50, "2024-02-01T00:00:00Z")
        self._ingest(client, "client_B", 7, "2024-01-10T00:00:00Z")

        assert client.get("/api/aggregates").json() == [
            {"client_id": "client_A", "count": 2, "total": 150},
            {"client_id": "client_B", "count": 1, "total": 7},
        ]

    def test_client_and_range(self, client):
        self._ingest(client, "client_A", 100, "2024-01-01T00:00:00Z")
        self._ingest(client, "client_A", 50, "2024-02-01T00:00:00Z")
        self._ingest(client, "client_B", 7, "2024-01-10T00:00:00Z")

        response = client.get(
            "/api/aggregates",
            params={"client": "client_A", "from": "2024-01-01", "to": "2024-01-31"},
        )
        assert response.json() == [{"client_id": "client_A", "count": 1, "total": 100}]

    def test_from_only_ignores_range(self, client):
        self._ingest(client, "client_A", 100, "2024-01-01T00:00:00Z")

        response = client.get("/api/aggregates", params={"from": "2030-01-01"})
        assert response.json() == [{"client_id": "client_A", "count": 1, "total": 100}]


# =============================================================
# TEST: Health
# =============================================================

class TestHealthEndpoint:
    """GET /api/health."""

    def test_healthy(self, client, sample_submission):
        client.post("/api/ingest", json=sample_submission)

        data = client.get("/api/health").json()
        assert data["status"] == "ok"
        assert data["database"] == "up"
        assert data["table_counts"] == {"raw_events": 1, "normalized_events": 1}
        assert data["ingest_metrics"]["committed"] == 1
        assert data["stale_received"] == 0

    def test_database_down(self, client, database, monkeypatch):
        def _down():
            raise DatabaseConnectionError("Cannot connect to database")

        monkeypatch.setattr(database, "verify_connection", _down)

        data = client.get("/api/health").json()
        assert data["status"] == "degraded"
        assert data["database"] == "down"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"
