#!/usr/bin/env python
"""
Ingest API Server Runner.

Usage:
    python run_server.py

The process owns the Database handle: it is created and
initialized here, injected into the app, and disposed on
shutdown.
"""

import logging
import sys

import uvicorn

from core.config import AppConfig
from core.exceptions import ConfigurationError
from dashboard.api import create_app
from database.engine import Database, DatabasePersistenceError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def main():
    """Run the ingest API server."""
    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e.message}")
        sys.exit(2)

    configure_logging(config.server.log_level)

    database = Database(config.database)
    try:
        database.initialize()
    except DatabasePersistenceError as e:
        logger.error(f"Failed to initialize database: {e}")
        database.dispose()
        sys.exit(1)

    app = create_app(database, config)

    logger.info(f"Starting Ingest API on {config.server.host}:{config.server.port}")
    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.server.log_level.lower(),
            access_log=True,
        )
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
