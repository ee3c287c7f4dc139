"""Redis-backed revocation list for access tokens.

Tokens are issued by the identity provider, so revoking one early
(logout) means remembering its jti until it would have expired anyway.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from ..config import get_settings

logger = logging.getLogger(__name__)

REVOKED_KEY_PREFIX = "revoked:"


class RedisClient:
    """Async Redis wrapper; reads degrade to "not revoked" when disconnected."""

    def __init__(self):
        self.settings = get_settings()
        self.redis: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Open the connection pool once."""
        if self.redis is not None:
            return
        client = redis.from_url(
            self.settings.redis_url,
            max_connections=self.settings.redis_max_connections,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            await client.aclose()
            raise
        self.redis = client
        logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        if self.redis is None:
            return
        await self.redis.aclose()
        self.redis = None
        logger.info("Disconnected from Redis")

    async def revoke_token(self, jti: str, ttl_seconds: int) -> bool:
        """Mark a token id as revoked for ttl_seconds. False if it couldn't be stored."""
        if self.redis is None or ttl_seconds <= 0:
            return False
        try:
            return bool(await self.redis.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl_seconds, "1"))
        except Exception as e:
            logger.error(f"Failed to revoke token {jti}: {e}")
            return False

    async def is_token_revoked(self, jti: str) -> bool:
        if self.redis is None:
            return False
        try:
            return await self.redis.exists(f"{REVOKED_KEY_PREFIX}{jti}") > 0
        except Exception as e:
            logger.error(f"Revocation lookup failed for {jti}: {e}")
            return False


_redis_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """Process-wide client, created lazily."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client
