"""Redis connection service for managing Redis client lifecycle and health checks."""

from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from src.userhub.runtime.config.config_data import RedisConfig
from src.userhub.runtime.context import get_config


class RedisService:
    """Owns the process-wide Redis client backing the session store.

    Created once at startup and closed at shutdown, the same way as
    :class:`DbSessionService`.
    """

    def __init__(self, config: RedisConfig | None = None):
        logger.info("Setting up Redis service")
        main_config = get_config()
        redis_config = config or main_config.redis

        self._enabled = redis_config.enabled and bool(redis_config.url)
        self._client = None
        self._url = redis_config.sanitized_connection_string

        if not redis_config.enabled:
            logger.info("Redis is disabled, service will not connect")
            return
        if not redis_config.url:
            logger.warning("Redis URL not configured, service will not connect")
            return

        try:
            import redis.asyncio as redis_async

            logger.info(
                "Initializing Redis client with connection string: {}",
                redis_config.sanitized_connection_string,
            )
            self._client = redis_async.from_url(
                redis_config.connection_string,
                encoding="utf-8",
                decode_responses=redis_config.decode_responses,
                max_connections=redis_config.max_connections,
                socket_timeout=redis_config.socket_timeout,
                socket_connect_timeout=redis_config.socket_connect_timeout,
                health_check_interval=30,
                retry=Retry(ExponentialBackoff(base=1, cap=10), retries=3),
                client_name="userhub",
            )
        except Exception as e:
            logger.error("Failed to initialize Redis client: {}", e)
            self._enabled = False
            self._client = None
            if main_config.app.environment == "production":
                raise

    def get_client(self):
        """Return the async client, or None when Redis is disabled."""
        if not self._enabled or not self._client:
            return None
        return self._client

    async def health_check(self) -> bool:
        if not self._client:
            return False
        try:
            await self._client.ping()
            return True
        except Exception as e:
            logger.error("Redis health check failed: {}", e)
            return False

    async def close(self) -> None:
        """Close the Redis connection and clean up resources."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except Exception as e:
                logger.error("Error closing Redis connection: {}", e)
            finally:
                self._client = None

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def url(self) -> str:
        """Connection URL with the password masked."""
        return self._url
