"""
Ingest endpoint.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse

from dashboard.dependencies import get_ingestion_service
from dashboard.schemas import ErrorResponse, IngestResponse
from data_ingestion.ingestion_service import IngestionService
from data_ingestion.types import RawEventInput

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ingest"])


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={500: {"model": ErrorResponse}},
)
def ingest_event(
    body: Any = Body(..., description="Raw submission: {source, payload: {metric, amount, timestamp}}"),
    fail: bool = Query(False, description="Inject a deterministic failure at the normalized insert"),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Ingest one raw event.

    The raw submission is always stored. Malformed fields are
    normalized to sentinel values, never rejected.
    """
    result = service.ingest(RawEventInput.from_dict(body), inject_failure=fail)

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error=result.error_message or "Ingest failed",
                raw_event_id=result.raw_event_id,
            ).model_dump(),
        )

    return IngestResponse(raw_event_id=result.raw_event_id, duplicate=result.duplicate)
