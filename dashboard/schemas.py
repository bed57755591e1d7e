"""
Pydantic schemas for the ingest API.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# =======================
# INGEST
# =======================

class IngestResponse(BaseModel):
    status: str = "processed"
    raw_event_id: Optional[int] = None
    duplicate: bool = False

class ErrorResponse(BaseModel):
    error: str
    raw_event_id: Optional[int] = None

# =======================
# RAW EVENTS
# =======================

class RawEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    source: Optional[str] = None
    raw_payload: str
    status: str  # RECEIVED, NORMALIZED, FAILED
    error_message: Optional[str] = None
    created_at: datetime

# =======================
# AGGREGATES
# =======================

class AggregateRowResponse(BaseModel):
    client_id: str
    count: int
    total: int = Field(description="Sum of amount over the client's normalized events")

# =======================
# HEALTH
# =======================

class HealthResponse(BaseModel):
    status: str  # ok, degraded
    database: str  # up, down
    timestamp: datetime
    stale_received: int = 0
    ingest_metrics: Dict[str, Any] = Field(default_factory=dict)
    table_counts: Dict[str, int] = Field(default_factory=dict)
