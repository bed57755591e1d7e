"""
Shared fixtures.

Every test gets its own in-memory SQLite database with the
event tables created.
"""

import pytest
from fastapi.testclient import TestClient

from chaos_testing.fault_injection import FaultInjector
from core.config import AppConfig, DatabaseConfig
from dashboard.api import create_app
from data_ingestion.ingestion_service import IngestionService
from database.engine import Database
from reporting.event_report import ReportingService
from storage.event_store import EventStore


@pytest.fixture
def database():
    """Fresh in-memory database."""
    db = Database(DatabaseConfig(url="sqlite://"))
    db.create_all_tables()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return EventStore(database)


@pytest.fixture
def service(store):
    return IngestionService(store, FaultInjector(enabled=True))


@pytest.fixture
def reports(store):
    return ReportingService(store)


@pytest.fixture
def client(database):
    """HTTP client over an app bound to the test database."""
    app = create_app(database, AppConfig(database=database.config))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_submission():
    """A well-formed submission."""
    return {
        "source": "client_A",
        "payload": {
            "metric": "purchase",
            "amount": "1200",
            "timestamp": "2024/01/01",
        },
    }
