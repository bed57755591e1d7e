"""
Database Persistence Layer - Core Engine.

============================================================
EXPLICIT DATABASE HANDLE
============================================================

This module provides the Database handle used by the event
store. The handle is constructed by the process entry point
and passed to every component that needs storage; there is
no module-level engine.

Requirements:
- SQLAlchemy ORM (SQLite or PostgreSQL)
- Explicit transaction management
- Structured logging
- Hard failures on persistence errors

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DatabaseConfig
from core.constants import REQUIRED_TABLES
from storage.models.base import Base

logger = logging.getLogger(__name__)


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


# =============================================================
# ENGINE CREATION
# =============================================================


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_database_engine(config: DatabaseConfig) -> Engine:
    """
    Create SQLAlchemy engine for the configured URL.

    SQLite engines allow cross-thread use (the API serves
    requests from a thread pool). In-memory SQLite shares a
    single connection so every session sees the same data.
    Server databases get a QueuePool sized from config.

    Args:
        config: Database configuration

    Returns:
        SQLAlchemy Engine
    """
    logger.info(f"Creating database engine for: {config.safe_url()}")

    if config.is_sqlite:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(config.url):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(config.url, echo=config.echo, **kwargs)
    else:
        engine = create_engine(
            config.url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo,
        )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


# =============================================================
# DATABASE HANDLE
# =============================================================


class Database:
    """
    Owns one engine and its session factory.

    ============================================================
    LIFECYCLE
    ============================================================
    database = Database(DatabaseConfig.from_env())
    database.initialize()
    ...
    database.dispose()

    ============================================================
    SESSIONS
    ============================================================
    with database.transaction_scope() as session:
        session.add(record)
        # Commits automatically at end

    with database.read_scope() as session:
        rows = session.execute(stmt).all()

    ============================================================
    """

    def __init__(self, config: Optional[DatabaseConfig] = None) -> None:
        self._config = config or DatabaseConfig()
        self._engine = create_database_engine(self._config)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def get_session(self) -> Session:
        """
        Get a new database session.

        IMPORTANT: Caller is responsible for committing/closing.
        Prefer transaction_scope() or read_scope() instead.
        """
        return self._session_factory()

    # =========================================================
    # SESSION MANAGEMENT
    # =========================================================

    @contextmanager
    def transaction_scope(self) -> Generator[Session, None, None]:
        """
        Context manager for explicit transaction boundaries.

        Commits only if no exception occurs.
        Rolls back on ANY exception.

        SQLAlchemy errors are re-raised as DatabasePersistenceError
        (DatabaseConnectionError when the database is unreachable).
        Any other exception is re-raised unchanged after rollback.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
            logger.debug("Database transaction committed successfully")
        except OperationalError as e:
            logger.error(f"Database unavailable, rolling back: {e}")
            session.rollback()
            raise DatabaseConnectionError(f"Transaction failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Database transaction failed, rolling back: {e}")
            session.rollback()
            raise DatabasePersistenceError(f"Transaction failed: {e}") from e
        except Exception as e:
            logger.debug(f"Transaction aborted, rolling back: {e}")
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def read_scope(self) -> Generator[Session, None, None]:
        """
        Context manager for read-only sessions.

        The session is never committed. Closing it ends the
        transaction and detaches loaded objects with their
        state intact.
        """
        session = self.get_session()
        try:
            yield session
        finally:
            session.close()

    # =========================================================
    # INITIALIZATION
    # =========================================================

    def verify_connection(self) -> bool:
        """
        Verify database connection is working.

        Returns:
            True if connection successful

        Raises:
            DatabaseConnectionError if connection fails
        """
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
        except OperationalError as e:
            logger.error(f"Database connection failed: {e}")
            raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e

    def create_all_tables(self) -> None:
        """
        Create all tables defined in ORM models.

        Raises:
            DatabaseInitializationError if table creation fails
        """
        # Register models with Base
        from storage import models  # noqa: F401

        try:
            logger.info("Creating database tables...")
            Base.metadata.create_all(bind=self._engine)
            logger.info("Database tables created successfully")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create database tables: {e}")
            raise DatabaseInitializationError(f"Table creation failed: {e}") from e

    def missing_tables(self) -> list:
        """Return required tables that do not exist."""
        existing = set(inspect(self._engine).get_table_names())
        missing = []
        for table in REQUIRED_TABLES:
            if table in existing:
                logger.info(f"  [OK] Table verified: {table}")
            else:
                logger.warning(f"  [!!] Table missing: {table}")
                missing.append(table)
        return missing

    def initialize(self) -> None:
        """
        Full database initialization sequence.

        1. Verify connection
        2. Create tables if not exist
        3. Abort on any failure
        """
        logger.info("=" * 60)
        logger.info("INITIALIZING EVENT STORE DATABASE")
        logger.info("=" * 60)

        try:
            self.verify_connection()
            self.create_all_tables()
            missing = self.missing_tables()
            if missing:
                raise DatabaseInitializationError(f"Tables missing after create: {missing}")
        except Exception as e:
            logger.critical(f"DATABASE INITIALIZATION FAILED: {e}")
            raise

        logger.info("DATABASE INITIALIZATION COMPLETE")

    def get_table_row_counts(self) -> Dict[str, int]:
        """
        Get row counts for the event tables.

        Returns:
            Dict mapping table name to row count (-1 if missing)
        """
        counts = {}
        with self._engine.connect() as conn:
            for table in REQUIRED_TABLES:
                try:
                    counts[table] = conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
                except SQLAlchemyError:
                    counts[table] = -1
        return counts

    def dispose(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()
        logger.info("Database engine disposed")


__all__ = [
    "Database",
    "create_database_engine",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
