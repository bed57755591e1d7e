"""
Service health endpoint.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_database, get_ingestion_service, get_reporting_service
from dashboard.schemas import HealthResponse
from data_ingestion.ingestion_service import IngestionService
from database.engine import Database, DatabasePersistenceError
from reporting.event_report import ReportingService
from storage.repositories.exceptions import RepositoryException

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System Health"])


@router.get("/health", response_model=HealthResponse)
def get_health(
    database: Database = Depends(get_database),
    service: IngestionService = Depends(get_ingestion_service),
    reports: ReportingService = Depends(get_reporting_service),
):
    """
    Database connectivity, table counts and ingest counters.
    """
    metrics = service.get_metrics().to_dict()
    try:
        database.verify_connection()
        counts = database.get_table_row_counts()
        stale = len(reports.stale_received())
    except (DatabasePersistenceError, RepositoryException) as e:
        logger.error(f"Health check failed: {e}")
        return HealthResponse(
            status="degraded",
            database="down",
            timestamp=datetime.now(timezone.utc),
            ingest_metrics=metrics,
        )

    return HealthResponse(
        status="ok",
        database="up",
        timestamp=datetime.now(timezone.utc),
        stale_received=stale,
        ingest_metrics=metrics,
        table_counts=counts,
    )
