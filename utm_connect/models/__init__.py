"""Database access layer."""

from .database import Database
from .db_factory import DatabaseFactory

__all__ = ["Database", "DatabaseFactory"]
