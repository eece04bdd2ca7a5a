"""SQLite database implementation."""

import logging
import os
from pathlib import Path
from typing import Any

from sqlalchemy.pool import NullPool, StaticPool

from .base import DatabaseBase

logger = logging.getLogger("tagproxy")

DEFAULT_SQLITE_PATH = "data/tagproxy.db"


class SQLiteDatabase(DatabaseBase):
    """SQLite database implementation."""

    @property
    def backend_name(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> str:
        """Configured path; TAGPROXY_DB_PATH takes priority."""
        override = os.getenv("TAGPROXY_DB_PATH")
        if override:
            return override
        sqlite_config = self.config.get("connection", {}).get("sqlite", {})
        return str(sqlite_config.get("path", DEFAULT_SQLITE_PATH))

    def get_connection_string(self) -> str:
        db_path = self.db_path
        if db_path == ":memory:":
            logger.debug("SQLite database: in-memory")
            return "sqlite:///:memory:"

        path = Path(db_path)
        if not path.is_absolute():
            project_root = Path(__file__).parent.parent.parent
            path = project_root / path
        path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"SQLite database path: {path}")
        return f"sqlite:///{path}"

    def get_engine_options(self) -> dict[str, Any]:
        # In-memory SQLite must share a single connection across threads
        if self.db_path == ":memory:":
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {"poolclass": NullPool}

    def initialize(self) -> None:
        if self._engine is not None:
            return
        super().initialize()
        logger.info(f"SQLite database initialized at: {self.db_path}")
