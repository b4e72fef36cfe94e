"""
Shared, expiring token revocation list backed by Redis.

Usage:
    from core.revocation import token_revocations

    await token_revocations.revoke(token, expires_at=claims.get("exp"))
    if await token_revocations.is_revoked(token):
        ...

Each revoked token is one key holding a marker, with a TTL equal to the
token's remaining lifetime, so the list never outgrows the set of live tokens
and every server instance sees the same state.
"""

import logging
import time
from typing import Optional

from redis.asyncio import Redis, from_url

from core.config import settings
from core.security import token_fingerprint

logger = logging.getLogger(__name__)


class TokenRevocationList:
    _instance = None
    _redis: Optional[Redis] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(TokenRevocationList, cls).__new__(cls)
        return cls._instance

    async def init(self, redis_client: Optional[Redis] = None):
        """Initialize Redis connection."""
        if redis_client is not None:
            self._redis = redis_client
        elif not self._redis:
            self._redis = from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        logger.info("Token revocation list initialized")

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.close()
            self._redis = None
            logger.info("Token revocation list closed")

    @property
    def redis(self) -> Redis:
        if not self._redis:
            raise RuntimeError("Token revocation list not initialized. Call init() first.")
        return self._redis

    def _key(self, token: str) -> str:
        return f"{settings.token_revocation_prefix}:{token_fingerprint(token)}"

    def _ttl(self, expires_at: Optional[float]) -> int:
        """Seconds until the token would expire on its own (at least 1)."""
        if expires_at is None:
            return settings.token_revocation_ttl_seconds
        return max(1, int(expires_at - time.time()))

    async def revoke(self, token: str, expires_at: Optional[float] = None) -> None:
        """Add a token to the list until it would have expired anyway."""
        await self.redis.set(self._key(token), "1", ex=self._ttl(expires_at))
        logger.info(f"Token revoked: {token_fingerprint(token)[:12]}")

    async def is_revoked(self, token: str) -> bool:
        return bool(await self.redis.exists(self._key(token)))


# Global instance
token_revocations = TokenRevocationList()
