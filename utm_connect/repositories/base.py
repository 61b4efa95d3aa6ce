"""Base repository class."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from utm_connect.models.database import Database

T = TypeVar("T")


def isoformat(value: Any) -> Any:
    """Serialize timestamps for ``to_dict`` output; pass anything else through."""
    return value.isoformat() if isinstance(value, datetime) else value


class BaseRepository(ABC, Generic[T]):
    """Base repository with the lookups every aggregate supports."""

    def __init__(self, database: Database):
        """
        Initialize repository with database connection.

        Args:
            database: Database instance
        """
        self.db = database

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[T]:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """
        Delete entity.

        Args:
            id: Entity ID

        Returns:
            True if deleted, False otherwise
        """

    @staticmethod
    def _affected(command_tag: str) -> int:
        return Database._parse_command_tag(command_tag)
