"""
Chaos Testing Package.

Deterministic fault injection for the ingest rollback path.
"""

from .fault_injection import FaultInjector, FaultPoint

__all__ = ["FaultInjector", "FaultPoint"]
