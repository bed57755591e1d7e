"""
Core Module - Configuration.

============================================================
PURPOSE
============================================================
All runtime configuration for the ingest service.

Values come from environment variables. A local .env file
is loaded once on import via python-dotenv.

============================================================
ENVIRONMENT
============================================================
DATABASE_URL                      sqlite:///./data.db
DATABASE_ECHO                     false
DATABASE_POOL_SIZE                10
DATABASE_MAX_OVERFLOW             20
DATABASE_POOL_TIMEOUT             30
DATABASE_POOL_RECYCLE             1800
INGEST_FAULT_INJECTION_ENABLED    true
INGEST_FORCE_FAILURE              false
INGEST_STALE_RECEIVED_MINUTES     5
API_HOST                          0.0.0.0
API_PORT / PORT                   3000
LOG_LEVEL                         INFO
CORS_ORIGINS                      *

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from core.exceptions import InvalidConfigError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


DEFAULT_DATABASE_URL = "sqlite:///./data.db"

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidConfigError(key, raw, "expected a boolean")


def _env_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfigError(key, raw, "expected an integer") from None
    if minimum is not None and value < minimum:
        raise InvalidConfigError(key, raw, f"must be at least {minimum}")
    return value


# ============================================================
# DATABASE CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class DatabaseConfig:
    """
    Connection settings for the event store database.

    Pool settings only apply to server databases; SQLite
    engines ignore them.
    """

    url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy database URL."""

    echo: bool = False
    """Log SQL statements."""

    pool_size: int = 10
    """Number of connections to keep in pool."""

    max_overflow: int = 20
    """Max connections beyond pool_size."""

    pool_timeout: int = 30
    """Seconds to wait for available connection."""

    pool_recycle: int = 1800
    """Recycle connections after N seconds."""

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load configuration from environment variables."""
        url = os.getenv("DATABASE_URL")
        if not url:
            url = DEFAULT_DATABASE_URL
            logger.warning(f"DATABASE_URL not set, using default: {url}")
        elif url.startswith("postgresql+asyncpg"):
            # The store is synchronous
            url = url.replace("postgresql+asyncpg", "postgresql")

        return cls(
            url=url,
            echo=_env_bool("DATABASE_ECHO", False),
            pool_size=_env_int("DATABASE_POOL_SIZE", 10, minimum=1),
            max_overflow=_env_int("DATABASE_MAX_OVERFLOW", 20, minimum=0),
            pool_timeout=_env_int("DATABASE_POOL_TIMEOUT", 30, minimum=1),
            pool_recycle=_env_int("DATABASE_POOL_RECYCLE", 1800, minimum=-1),
        )

    def safe_url(self) -> str:
        """URL with credentials stripped, for logs."""
        return self.url.split("@")[-1]


# ============================================================
# INGEST CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class IngestConfig:
    """
    Ingest pipeline settings.

    SAFETY: force_failure fails every attempt. Use only for
    operational drills of the rollback path.
    """

    fault_injection_enabled: bool = True
    """Honour per-request fault injection flags."""

    force_failure: bool = False
    """Fail every attempt at the normalized insert."""

    stale_received_minutes: int = 5
    """Age after which a RECEIVED row is reported as stale."""

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Load configuration from environment variables."""
        return cls(
            fault_injection_enabled=_env_bool("INGEST_FAULT_INJECTION_ENABLED", True),
            force_failure=_env_bool("INGEST_FORCE_FAILURE", False),
            stale_received_minutes=_env_int("INGEST_STALE_RECEIVED_MINUTES", 5, minimum=1),
        )


# ============================================================
# SERVER CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        port = _env_int("API_PORT", _env_int("PORT", 3000, minimum=1), minimum=1)
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise InvalidConfigError("LOG_LEVEL", log_level, "unknown logging level")
        origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        return cls(
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=port,
            log_level=log_level,
            cors_origins=origins or ["*"],
        )


# ============================================================
# APPLICATION CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class AppConfig:
    """Complete service configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load every section from environment variables."""
        return cls(
            database=DatabaseConfig.from_env(),
            ingest=IngestConfig.from_env(),
            server=ServerConfig.from_env(),
        )
