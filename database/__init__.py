"""
Database Package Initialization.

============================================================
EVENT STORE DATABASE LAYER
============================================================

Provides the explicit Database handle (engine + session
factory) that the entry point constructs and injects into
the event store, ingest service and API.

REQUIRED:
- Every write runs inside an explicit transaction scope
- Every failure raises a hard exception
- No module-level engine or session singletons

============================================================
"""

from .engine import (
    Database,
    create_database_engine,
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)

__all__ = [
    "Database",
    "create_database_engine",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
