"""Database factory holding the process-wide instance."""

import logging
from typing import Any, Optional

from .base import DatabaseBase
from .sqlite import DEFAULT_SQLITE_PATH, SQLiteDatabase

logger = logging.getLogger("tagproxy")

_database_instance: Optional[DatabaseBase] = None


def create_database(config: Optional[dict[str, Any]] = None) -> DatabaseBase:
    """Create (but do not initialize) a database from its config section.

    Raises:
        ValueError: If an unsupported database backend is specified.
    """
    if config is None:
        config = {"backend": "sqlite", "connection": {"sqlite": {"path": DEFAULT_SQLITE_PATH}}}

    backend = str(config.get("backend", "sqlite")).lower()
    if backend != "sqlite":
        raise ValueError(f"Unsupported database backend: {backend}. Supported backends: sqlite")
    return SQLiteDatabase(config)


def get_database(config: Optional[dict[str, Any]] = None) -> DatabaseBase:
    """Return the process-wide database, creating it on first use."""
    global _database_instance
    if _database_instance is None:
        _database_instance = create_database(config)
        logger.info(f"Database factory created {_database_instance.backend_name} database instance")
    return _database_instance


def set_database_instance(instance: Optional[DatabaseBase]) -> None:
    """Replace the process-wide database (None clears it)."""
    global _database_instance
    _database_instance = instance


def reset_database_instance() -> None:
    """Close and forget the process-wide database. Mainly useful for tests."""
    global _database_instance
    if _database_instance is not None:
        _database_instance.close()
    _database_instance = None
    logger.debug("Database instance reset")
