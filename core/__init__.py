"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- config: Environment-driven configuration
- exceptions: Custom exception hierarchy
- constants: Service-wide constants
"""

from .config import AppConfig, DatabaseConfig, IngestConfig, ServerConfig
from .exceptions import (
    ConfigurationError,
    IngestException,
    InjectedFailureError,
    InvalidConfigError,
    StatusReconciliationError,
    StorageUnavailableError,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "IngestConfig",
    "ServerConfig",
    "ConfigurationError",
    "IngestException",
    "InjectedFailureError",
    "InvalidConfigError",
    "StatusReconciliationError",
    "StorageUnavailableError",
]
