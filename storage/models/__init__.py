"""
Storage Models Package.

This package contains the ORM models for the event store.

============================================================
MODEL ORGANIZATION
============================================================

base.py
- Base
- CreatedAtMixin

events.py
- RawEvent (raw_events)
- NormalizedEvent (normalized_events)
- RawEventStatus

============================================================
"""

from storage.models.base import Base, CreatedAtMixin, utcnow
from storage.models.events import NormalizedEvent, RawEvent, RawEventStatus

__all__ = [
    "Base",
    "CreatedAtMixin",
    "utcnow",
    "NormalizedEvent",
    "RawEvent",
    "RawEventStatus",
]
