"""Redis connection management.

Redis backs the distributed rate limiter and is reported by the readiness
probe. The query cache itself is process-local and never touches Redis.

Usage:
    redis_manager = await init_redis()
    health = await redis_manager.health_check()
"""

import logging
import time
from typing import Any

import redis.asyncio as redis
from redis.asyncio import ConnectionPool
from redis.exceptions import RedisError

from ytdash.core.config import get_settings

logger = logging.getLogger(__name__)


class RedisManager:
    """Redis connection manager with graceful degradation when unavailable."""

    def __init__(
        self,
        redis_url: str | None = None,
        redis_db: int | None = None,
        health_check_timeout: float = 5.0,
    ) -> None:
        """Initialize Redis manager.

        Args:
            redis_url: Redis connection URL (redis://localhost:6379)
            redis_db: Redis database number
            health_check_timeout: Timeout for connects and pings in seconds
        """
        settings = get_settings()

        self.redis_url = redis_url or settings.redis_url
        self.redis_db = redis_db if redis_db is not None else settings.redis_db
        self.health_check_timeout = health_check_timeout

        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._available = False

    @property
    def is_available(self) -> bool:
        return self._available

    async def connect(self) -> bool:
        """Establish Redis connection with connection pooling.

        Returns:
            True if connection successful, False otherwise
        """
        if self._client is not None:
            return self._available

        try:
            self._pool = ConnectionPool.from_url(
                self.redis_url,
                db=self.redis_db,
                decode_responses=True,
                max_connections=20,
                socket_timeout=self.health_check_timeout,
                socket_connect_timeout=self.health_check_timeout,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
            self._available = True

            logger.info("Redis connection established", extra={"url": self.safe_url()})
            return True

        except (RedisError, OSError) as e:
            logger.warning("Redis connection failed, operating in degraded mode: %s", e)
            self._available = False
            self._client = None
            self._pool = None
            return False

    async def disconnect(self) -> None:
        """Close Redis connection and pool."""
        if self._client:
            try:
                await self._client.aclose()
            except RedisError as e:
                logger.warning("Error closing Redis client: %s", e)
            finally:
                self._client = None
                self._available = False

        if self._pool:
            try:
                await self._pool.disconnect()
            except RedisError as e:
                logger.warning("Error disconnecting Redis pool: %s", e)
            finally:
                self._pool = None

    def safe_url(self) -> str:
        """Return sanitized Redis URL for logging (no password)."""
        if "://" not in self.redis_url:
            return self.redis_url
        scheme, rest = self.redis_url.split("://", 1)
        if "@" in rest:
            userinfo, host = rest.split("@", 1)
            if ":" in userinfo:
                username, _ = userinfo.split(":", 1)
                return f"{scheme}://{username}:***@{host}"
            return f"{scheme}://***@{host}"
        return self.redis_url

    async def health_check(self) -> dict[str, Any]:
        """Ping Redis and report latency.

        Returns:
            Health status dictionary
        """
        result: dict[str, Any] = {"status": "unhealthy", "available": False, "latency_ms": 0}

        if self._client is None and not await self.connect():
            result["error"] = "Redis unavailable"
            return result

        try:
            start = time.perf_counter()
            await self._client.ping()
            result["status"] = "healthy"
            result["available"] = True
            result["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except (RedisError, OSError) as e:
            result["error"] = str(e)
            logger.warning("Redis health check failed: %s", e)

        return result


# Global Redis manager instance
_redis_manager: RedisManager | None = None


def get_redis_manager() -> RedisManager:
    """Get or create the global Redis manager."""
    global _redis_manager
    if _redis_manager is None:
        _redis_manager = RedisManager()
    return _redis_manager


async def init_redis() -> RedisManager:
    """Initialize the global Redis connection."""
    manager = get_redis_manager()
    await manager.connect()
    return manager


async def close_redis() -> None:
    """Close the global Redis connection."""
    global _redis_manager
    if _redis_manager is not None:
        await _redis_manager.disconnect()
        _redis_manager = None
