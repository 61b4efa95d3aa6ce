"""Process-wide database instance."""

import asyncio
from typing import Optional

from loguru import logger

from utm_connect.core.settings import get_settings
from utm_connect.models.database import Database


class DatabaseFactory:
    """
    Lazily creates and connects the single Database used by the web app.

    Example:
        ```python
        db = await DatabaseFactory.ensure_connected()
        ...
        await DatabaseFactory.close_instance()
        ```
    """

    _instance: Optional[Database] = None
    _lock: Optional[asyncio.Lock] = None

    @classmethod
    def _get_lock(cls) -> asyncio.Lock:
        # Created on first use so it binds to the running event loop
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def ensure_connected(cls) -> Database:
        """Return the shared Database, creating and connecting it on first call."""
        async with cls._get_lock():
            if cls._instance is None:
                cls._instance = Database.from_settings(get_settings())
                logger.debug("Created database instance")
            if not cls._instance.is_connected:
                await cls._instance.connect()
            return cls._instance

    @classmethod
    async def close_instance(cls) -> None:
        """Close and forget the shared Database. Called on application shutdown."""
        async with cls._get_lock():
            if cls._instance is None:
                return
            instance, cls._instance = cls._instance, None
            await instance.close()

    @classmethod
    def reset(cls) -> None:
        """Forget the instance without closing it (tests only)."""
        cls._instance = None
        cls._lock = None
