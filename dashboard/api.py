"""
Dashboard - API.

============================================================
RESPONSIBILITY
============================================================
HTTP surface of the ingest service.

- POST /api/ingest          ingest one raw event
- GET  /api/events          raw submissions, newest first
- GET  /api/events/{id}     one raw submission
- GET  /api/aggregates      per-client count and total
- GET  /api/health          database and ingest counters

============================================================
WIRING
============================================================
create_app() receives the Database handle from the entry
point and builds the store and services once; routes get
them from app.state. The app never creates or disposes the
database itself.

============================================================
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import AppConfig
from core.constants import SYSTEM_NAME, SYSTEM_VERSION
from dashboard.routers import events, health, ingest
from data_ingestion.ingestion_service import IngestionService
from database.engine import Database
from reporting.event_report import ReportingService
from storage.event_store import EventStore

logger = logging.getLogger(__name__)


def create_app(database: Database, config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the FastAPI application around an existing Database.

    Args:
        database: Initialized database handle (owned by caller)
        config: Service configuration; defaults when omitted
    """
    config = config or AppConfig()

    app = FastAPI(
        title="Event Ingest API",
        description="Ingests raw events, deduplicates normalized events, reports aggregates.",
        version=SYSTEM_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = EventStore(database)
    app.state.database = database
    app.state.event_store = store
    app.state.ingestion_service = IngestionService.from_config(store, config.ingest)
    app.state.reporting_service = ReportingService(
        store, stale_after=timedelta(minutes=config.ingest.stale_received_minutes)
    )

    app.include_router(ingest.router, prefix="/api")
    app.include_router(events.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    @app.get("/", tags=["Root"])
    def root():
        return {"service": SYSTEM_NAME, "version": SYSTEM_VERSION, "docs": "/docs"}

    logger.info("Event ingest API created")
    return app
