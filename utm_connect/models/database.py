"""asyncpg pool wrapper shared by all repositories."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg
from loguru import logger

from utm_connect.core.exceptions import DatabaseNotConnectedError, DatabasePoolTimeoutError
from utm_connect.utils.masking import mask_database_url

ACQUIRE_TIMEOUT = 30.0
# Seconds an idle pooled connection lives before it is closed
MAX_INACTIVE_CONNECTION_LIFETIME = 300.0


class Database:
    """
    One asyncpg pool per process.

    Repositories borrow connections with ``get_connection()`` for single
    statements and ``transaction()`` when several statements must commit together.
    """

    def __init__(self, database_url: str, pool_size: int = 10, command_timeout: float = 60.0):
        if not database_url:
            raise ValueError("database_url is required")
        self.database_url = database_url
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            command_timeout=settings.db_command_timeout,
        )

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    @staticmethod
    def _parse_command_tag(command_tag: str) -> int:
        """
        Row count from a status tag such as 'UPDATE 5' or 'INSERT 0 1'.

        Returns 0 for tags without a count.
        """
        try:
            return int(command_tag.split()[-1])
        except (ValueError, IndexError, AttributeError):
            logger.warning(f"Failed to parse command tag: {command_tag!r}")
            return 0

    async def connect(self) -> None:
        async with self._pool_lock:
            if self.pool is not None:
                return
            min_size = min(2, self.pool_size)
            self.pool = await asyncpg.create_pool(
                self.database_url,
                min_size=min_size,
                max_size=self.pool_size,
                timeout=ACQUIRE_TIMEOUT,
                command_timeout=self.command_timeout,
                max_inactive_connection_lifetime=MAX_INACTIVE_CONNECTION_LIFETIME,
            )
            logger.info(
                f"Database pool ready ({min_size}-{self.pool_size} connections): "
                f"{mask_database_url(self.database_url)}"
            )

    async def close(self) -> None:
        async with self._pool_lock:
            if self.pool is None:
                return
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @asynccontextmanager
    async def get_connection(
        self, timeout: float = ACQUIRE_TIMEOUT
    ) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a pooled connection.

        Raises:
            DatabaseNotConnectedError: connect() has not run
            DatabasePoolTimeoutError: No connection freed up within ``timeout``
        """
        if self.pool is None:
            raise DatabaseNotConnectedError()
        try:
            conn = await self.pool.acquire(timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Connection pool exhausted after {timeout}s (size {self.pool_size})")
            raise DatabasePoolTimeoutError(timeout=timeout, pool_size=self.pool_size)
        try:
            yield conn
        finally:
            await self.pool.release(conn)

    @asynccontextmanager
    async def transaction(
        self, timeout: float = ACQUIRE_TIMEOUT
    ) -> AsyncIterator[asyncpg.Connection]:
        """Connection inside an open transaction; rolled back if the block raises."""
        async with self.get_connection(timeout=timeout) as conn:
            async with conn.transaction():
                yield conn

    async def ping(self, timeout: float = 5.0) -> float:
        """
        Round-trip ``SELECT 1``.

        Returns:
            Latency in milliseconds
        """
        started = time.perf_counter()
        async with self.get_connection(timeout=timeout) as conn:
            await conn.fetchval("SELECT 1")
        return (time.perf_counter() - started) * 1000
