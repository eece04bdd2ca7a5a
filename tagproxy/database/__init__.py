"""Database support for tagproxy (SQLite via SQLAlchemy)."""

from .base import Base, DatabaseBase
from .factory import create_database, get_database, reset_database_instance, set_database_instance

__all__ = [
    "Base",
    "DatabaseBase",
    "create_database",
    "get_database",
    "reset_database_instance",
    "set_database_instance",
]
