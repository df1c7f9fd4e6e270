"""Password reset tokens in Redis.

Redis is a best-effort tier here: when it is disabled or unreachable every
operation degrades to a no-op or ``None``. A lost token only forces the user
to verify again, so nothing in this module raises on cache failures.
"""

import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from together.config import settings
from together.services.codes import generate_reset_token
from together.services.errors import StorageError
from together.services.resilience import with_retry

logger = logging.getLogger(__name__)

KEY_PREFIX = "password_reset:"


class ResetTokenStore:
    """Maps unguessable tokens to member ids with a native Redis TTL.

    Construct one per process, ``connect()`` on startup and ``close()`` on
    shutdown. Tests pass a ready client instead.
    """

    def __init__(
        self,
        client: aioredis.Redis | None = None,
        *,
        url: str | None = None,
        enabled: bool | None = None,
        ttl_seconds: int | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self.url = url or settings.redis_url
        self.enabled = enabled if enabled is not None else settings.redis_enabled
        self.ttl_seconds = ttl_seconds or settings.reset_token_ttl_seconds
        self.timeout = timeout if timeout is not None else settings.storage_timeout_seconds

    @property
    def client(self) -> aioredis.Redis | None:
        """The underlying client, or None when the tier is unavailable."""
        return self._client

    @property
    def available(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Connect and ping. Leaves the store unavailable on failure."""
        if self._client is not None:
            return
        if not self.enabled:
            logger.info("Reset token store disabled (REDIS_ENABLED=false)")
            return

        client: aioredis.Redis = aioredis.from_url(self.url, decode_responses=True)
        try:
            async with asyncio.timeout(self.timeout):
                await client.ping()
        except (RedisError, OSError, TimeoutError) as e:
            logger.warning(f"Reset token store unavailable, continuing without it: {e!r}")
            await client.aclose()
            return

        self._client = client
        logger.info(f"Reset token store connected to {self.url.split('@')[-1]}")

    async def close(self) -> None:
        """Close the client connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def issue(self, subject_id: str, ttl_seconds: int | None = None) -> str:
        """Create a token resolving to ``subject_id`` for ``ttl_seconds``.

        The token is returned even when it could not be stored; it will then
        simply fail to resolve.
        """
        token = generate_reset_token()
        ttl = ttl_seconds or self.ttl_seconds

        if self._client is None:
            logger.warning("Reset token store unavailable, issued token will not resolve")
            return token

        try:
            async with asyncio.timeout(self.timeout):
                await self._client.set(f"{KEY_PREFIX}{token}", subject_id, ex=ttl)
        except (RedisError, OSError, TimeoutError) as e:
            logger.warning(f"Failed to store reset token: {e!r}")
        return token

    async def _get(self, key: str) -> str | None:
        try:
            async with asyncio.timeout(self.timeout):
                return await self._client.get(key)  # type: ignore[union-attr]
        except (RedisError, OSError, TimeoutError) as e:
            raise StorageError(f"Reset token lookup failed: {e!r}") from e

    async def resolve(self, token: str) -> str | None:
        """Return the member id for ``token``, or None if absent or expired."""
        if not token or self._client is None:
            return None
        try:
            return await with_retry(self._get, f"{KEY_PREFIX}{token}")
        except StorageError as e:
            logger.warning(f"Treating reset token as missing: {e}")
            return None

    async def revoke(self, token: str) -> None:
        """Delete ``token``. Deleting a missing token is a no-op."""
        if not token or self._client is None:
            return
        try:
            async with asyncio.timeout(self.timeout):
                await self._client.delete(f"{KEY_PREFIX}{token}")
        except (RedisError, OSError, TimeoutError) as e:
            logger.warning(f"Failed to revoke reset token: {e!r}")
