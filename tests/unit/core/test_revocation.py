"""
Tests for the shared token revocation list.

Tests:
- Keys are fingerprints under the configured prefix
- TTL follows the token's remaining lifetime
- Lookups against the shared store
"""

import time

import pytest
from unittest.mock import AsyncMock

from core.config import settings
from core.revocation import TokenRevocationList
from core.security import token_fingerprint


class TestTokenRevocationList:
    """Test revoke / is_revoked against a mocked Redis."""

    async def test_revoke_sets_expiring_fingerprint_key(self, revocations):
        expires_at = time.time() + 600

        await revocations.revoke("token-abc", expires_at=expires_at)

        key, value = revocations.redis.set.call_args.args
        ttl = revocations.redis.set.call_args.kwargs["ex"]
        assert key == f"{settings.token_revocation_prefix}:{token_fingerprint('token-abc')}"
        assert "token-abc" not in key
        assert value == "1"
        assert 590 <= ttl <= 600

    async def test_revoke_without_expiry_uses_fallback_ttl(self, revocations):
        await revocations.revoke("token-abc")
        assert revocations.redis.set.call_args.kwargs["ex"] == settings.token_revocation_ttl_seconds

    async def test_already_expired_token_gets_minimal_ttl(self, revocations):
        await revocations.revoke("token-abc", expires_at=time.time() - 30)
        assert revocations.redis.set.call_args.kwargs["ex"] == 1

    async def test_is_revoked(self, revocations):
        assert await revocations.is_revoked("token-abc") is False

        await revocations.revoke("token-abc", expires_at=time.time() + 60)

        assert await revocations.is_revoked("token-abc") is True
        assert await revocations.is_revoked("token-other") is False

    async def test_singleton(self):
        assert TokenRevocationList() is TokenRevocationList()

    async def test_uninitialized_list_raises(self):
        revocation_list = TokenRevocationList()
        await revocation_list.close()
        with pytest.raises(RuntimeError):
            await revocation_list.is_revoked("token-abc")

    async def test_close_closes_redis(self):
        revocation_list = TokenRevocationList()
        redis = AsyncMock()
        await revocation_list.init(redis_client=redis)

        await revocation_list.close()

        redis.close.assert_awaited_once()
