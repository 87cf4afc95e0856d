"""Redis client wrapper for the GradeUp gatekeeper.

Redis holds short-lived OAuth state tokens. Configuration comes from the
REDIS_PRIMARY_ENDPOINT environment variable.
"""

import redis.asyncio as redis

from src.utils.config import get_config_value_str
from src.utils.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Lazily connected Redis client."""

    def __init__(self):
        self._client: redis.Redis | None = None
        self._connection_url: str | None = None

    @property
    def connection_url(self) -> str:
        if not self._connection_url:
            endpoint = get_config_value_str("REDIS_PRIMARY_ENDPOINT") or "localhost:6379"
            if not endpoint.startswith(("redis://", "rediss://", "unix://")):
                endpoint = f"redis://{endpoint}"
            self._connection_url = endpoint
        return self._connection_url

    async def _get_client(self) -> redis.Redis:
        if not self._client:
            self._client = redis.from_url(
                self.connection_url,
                decode_responses=True,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        return self._client

    async def ping(self) -> bool:
        """Health check. Returns False instead of raising when Redis is unreachable."""
        try:
            client = await self._get_client()
            return bool(await client.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


_redis_client = RedisClient()


async def ping() -> bool:
    return await _redis_client.ping()


async def get_client() -> redis.Redis:
    return await _redis_client._get_client()


async def close() -> None:
    await _redis_client.close()
