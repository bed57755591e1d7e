"""
Dashboard Package.

HTTP API for the ingest service (FastAPI).

Modules:
- api: create_app() factory
- routers/: ingest, events, health endpoints
- schemas: Pydantic request/response models
"""
