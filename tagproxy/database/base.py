"""Database engine and session management."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger("tagproxy")

# Base class for SQLAlchemy models
Base = declarative_base()


class DatabaseBase(ABC):
    """Owns one engine and its session factory."""

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize database with configuration.

        Args:
            config: The `database` config section.
        """
        self.config = config
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of the database backend."""

    @abstractmethod
    def get_connection_string(self) -> str:
        """Return the SQLAlchemy connection URL."""

    def get_engine_options(self) -> dict[str, Any]:
        """Extra keyword arguments for create_engine."""
        return {}

    def initialize(self) -> None:
        """Create the engine, the session factory and any missing tables."""
        if self._engine is not None:
            return

        logger.info(f"Initializing {self.backend_name} database connection")
        self._engine = create_engine(
            self.get_connection_string(),
            echo=False,
            **self.get_engine_options(),
        )
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        # Import models so their tables are registered on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(self._engine)
        logger.info(f"{self.backend_name} database initialized successfully")

    def get_session(self) -> Session:
        """Get a new database session.

        Raises:
            RuntimeError: If database is not initialized.
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._session_factory()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Context manager for database sessions.

        Yields:
            A database session that is committed on success and rolled back
            on error.
        """
        sess = self.get_session()
        try:
            yield sess
            sess.commit()
        except Exception:
            sess.rollback()
            raise
        finally:
            sess.close()

    def close(self) -> None:
        """Dispose of the engine and release all connections."""
        if self._engine is not None:
            logger.info(f"Closing {self.backend_name} database connection")
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        if not self.is_initialized:
            return False
        try:
            with self.session() as sess:
                sess.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
