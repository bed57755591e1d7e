"""
Storage Package.

This package owns all event persistence.

Modules:
- event_store: EventStore facade (the only mutation path)
- models/: ORM models
- repositories/: Data access layer
"""
