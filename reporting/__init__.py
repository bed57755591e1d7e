"""
Reporting Package.

Read-only reports over the event store.

Modules:
- event_report: Raw submission listing and client aggregates
"""

from .event_report import ReportingService

__all__ = ["ReportingService"]
