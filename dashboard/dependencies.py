"""
FastAPI dependencies.

Services are built once by create_app() and stored on
app.state; routes receive them through these providers.
"""
from fastapi import Request

from data_ingestion.ingestion_service import IngestionService
from database.engine import Database
from reporting.event_report import ReportingService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def get_reporting_service(request: Request) -> ReportingService:
    return request.app.state.reporting_service
