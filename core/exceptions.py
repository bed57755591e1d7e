"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the custom exceptions for the ingest service.

- Provides clear exception hierarchy
- Enables specific error handling
- Supports error categorization for logging
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
IngestException (base)
├── ConfigurationError
│   └── InvalidConfigError
├── StorageUnavailableError
├── InjectedFailureError
└── StatusReconciliationError

Database and repository errors live beside the code that
raises them (database/engine.py, storage/repositories/).

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, the attempt could not complete."""

    CRITICAL = "critical"
    """Stored state is inconsistent, requires an operator."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error can be recovered from automatically."""

    TRANSIENT = "transient"
    """Temporary error, retry may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires intervention."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class IngestException(Exception):
    """
    Base exception for all ingest service errors.

    All exceptions carry:
    - severity: for logging level decisions
    - context: for debugging
    - classification: for retry decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(IngestException):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid configuration for {key}: {reason}",
            config_key=key,
            actual_value=value,
            context={"reason": reason},
        )


# ============================================================
# INGEST ERRORS
# ============================================================

class StorageUnavailableError(IngestException):
    """
    The raw submission could not be written.

    Fatal to the ingest attempt. Nothing has been persisted,
    so there is nothing to roll back and no row to mark.
    """

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.TRANSIENT

    def __init__(self, message: str = "Raw insert failed", **kwargs):
        super().__init__(message, **kwargs)


class InjectedFailureError(IngestException):
    """Simulated downstream failure raised by the fault injector."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str = "Simulated DB failure",
        fault_point: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if fault_point:
            context["fault_point"] = fault_point
        super().__init__(message, context=context, **kwargs)


class StatusReconciliationError(IngestException):
    """
    The raw submission's terminal status could not be written.

    The row is left in RECEIVED. Raised only when the
    independent FAILED write itself fails.
    """

    default_severity = Severity.CRITICAL
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(self, raw_event_id: int, reason: str, **kwargs):
        context = kwargs.pop("context", {})
        context["raw_event_id"] = raw_event_id
        super().__init__(
            f"Could not reconcile status of raw event {raw_event_id}: {reason}",
            context=context,
            **kwargs,
        )
        self.raw_event_id = raw_event_id
