"""
Ingest API Routers.
"""
from . import events, health, ingest

__all__ = ["events", "health", "ingest"]
