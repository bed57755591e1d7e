"""
Raw event listing and aggregate report endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from dashboard.dependencies import get_reporting_service
from dashboard.schemas import AggregateRowResponse, RawEventResponse
from reporting.event_report import ReportingService

router = APIRouter(tags=["Events"])


@router.get("/events", response_model=List[RawEventResponse])
def list_events(
    limit: Optional[int] = Query(None, ge=1, le=10000),
    reports: ReportingService = Depends(get_reporting_service),
):
    """
    List raw submissions, newest first.
    """
    return reports.list_raw_submissions(limit)


@router.get("/events/{raw_event_id}", response_model=RawEventResponse)
def get_event(
    raw_event_id: int,
    reports: ReportingService = Depends(get_reporting_service),
):
    event = reports.get_raw_submission(raw_event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Raw event {raw_event_id} not found")
    return event


@router.get("/aggregates", response_model=List[AggregateRowResponse])
def get_aggregates(
    client: Optional[str] = Query(None, description="Exact client_id filter"),
    from_: Optional[str] = Query(None, alias="from", description="Inclusive lower timestamp bound"),
    to: Optional[str] = Query(None, description="Inclusive upper timestamp bound"),
    reports: ReportingService = Depends(get_reporting_service),
):
    """
    Count and total amount per client.

    The timestamp range is applied only when both `from` and
    `to` are given.
    """
    rows = reports.aggregate(client_id=client, from_timestamp=from_, to_timestamp=to)
    return [AggregateRowResponse(**row.to_dict()) for row in rows]
