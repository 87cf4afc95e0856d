"""Supabase Postgres access for the gatekeeper.

The app owns one asyncpg pool (created in the FastAPI lifespan). Request handlers
get a single pooled connection per request through `get_db_connection`.
"""

from collections.abc import AsyncIterator

import asyncpg
from fastapi import Request

from src.utils.config import get_database_url
from src.utils.logging import get_logger

logger = get_logger(__name__)


class SupabaseDB:
    """Connection pool manager for the Supabase PostgreSQL database."""

    def __init__(self, connection_string: str | None = None):
        self._connection_string = connection_string
        self._pool: asyncpg.Pool | None = None

    @property
    def connection_string(self) -> str:
        if not self._connection_string:
            self._connection_string = get_database_url()
        return self._connection_string

    @property
    def pool(self) -> asyncpg.Pool | None:
        return self._pool

    async def connect(self, min_size: int = 1, max_size: int = 10) -> asyncpg.Pool:
        """Create the pool if it does not exist yet."""
        if not self._pool:
            self._pool = await asyncpg.create_pool(
                self.connection_string, min_size=min_size, max_size=max_size, timeout=30
            )
            logger.info("Supabase database pool initialized", max_size=max_size)
        return self._pool

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Supabase database pool closed")

    async def ping(self) -> bool:
        if not self._pool:
            return False
        async with self._pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1


async def get_db_connection(request: Request) -> AsyncIterator[asyncpg.Connection]:
    """FastAPI dependency yielding one pooled connection for the current request."""
    db: SupabaseDB = request.app.state.db
    pool = db.pool
    if pool is None:
        pool = await db.connect()
    async with pool.acquire() as conn:
        yield conn
