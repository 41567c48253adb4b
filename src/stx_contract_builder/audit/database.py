"""Database connection management for the audit system."""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "STX_BUILDER_DATABASE_URL"
DEFAULT_DATABASE_URL = "sqlite://"


def get_database_url(database_url: Optional[str] = None) -> str:
    """
    Resolve the audit database URL.

    Args:
        database_url: Explicit URL. Falls back to ``STX_BUILDER_DATABASE_URL``
            and then to an in-memory SQLite database.
    """
    return database_url or os.environ.get(DATABASE_URL_ENV) or DEFAULT_DATABASE_URL


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """
    Database connection manager with connection pooling.

    Handles database connections, session management, and schema initialization.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy connection URL. If None, resolved from the
                environment or an in-memory SQLite database.
            pool_size: Number of connections to keep in the pool.
            max_overflow: Maximum overflow connections beyond pool_size.
            echo: If True, log all SQL statements.
        """
        self._database_url = get_database_url(database_url)
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._echo = echo

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if _is_memory_sqlite(self._database_url):
                # One shared connection, otherwise each session sees an empty database
                self._engine = create_engine(
                    self._database_url,
                    echo=self._echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            elif self._database_url.startswith("sqlite"):
                self._engine = create_engine(
                    self._database_url,
                    echo=self._echo,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(
                    self._database_url,
                    pool_size=self._pool_size,
                    max_overflow=self._max_overflow,
                    echo=self._echo,
                    pool_pre_ping=True,
                )
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with automatic cleanup.

        Yields:
            SQLAlchemy Session object.

        Example:
            with db_manager.get_session() as session:
                session.add(some_object)
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create all audit tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.debug(f"Audit schema initialized on {self.engine.url.get_backend_name()}")

    def drop_all_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        """Close the database engine and release all connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False
