"""Reset token store tests."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from together.services.reset_tokens import KEY_PREFIX, ResetTokenStore


class TestResetTokenStore:
    """Tests against an in-memory Redis."""

    async def test_issue_and_resolve(self, reset_tokens, redis_client):
        token = await reset_tokens.issue("member-1")

        assert len(token) == 64
        assert await reset_tokens.resolve(token) == "member-1"
        assert await redis_client.ttl(f"{KEY_PREFIX}{token}") > 590

    async def test_tokens_are_distinct(self, reset_tokens):
        first = await reset_tokens.issue("member-1")
        second = await reset_tokens.issue("member-1")

        assert first != second
        assert await reset_tokens.resolve(first) == "member-1"
        assert await reset_tokens.resolve(second) == "member-1"

    async def test_resolve_unknown_token(self, reset_tokens):
        assert await reset_tokens.resolve("0" * 64) is None
        assert await reset_tokens.resolve("") is None

    async def test_revoke(self, reset_tokens):
        token = await reset_tokens.issue("member-1")

        await reset_tokens.revoke(token)
        assert await reset_tokens.resolve(token) is None

        # Revoking twice is a no-op
        await reset_tokens.revoke(token)

    async def test_token_expires(self, reset_tokens):
        token = await reset_tokens.issue("member-1", ttl_seconds=1)
        assert await reset_tokens.resolve(token) == "member-1"

        await asyncio.sleep(1.1)

        assert await reset_tokens.resolve(token) is None


class TestUnavailableRedis:
    """The store degrades to no-ops when Redis is missing or failing."""

    async def test_disabled_store(self):
        store = ResetTokenStore(enabled=False)
        await store.connect()

        assert store.available is False
        token = await store.issue("member-1")
        assert len(token) == 64
        assert await store.resolve(token) is None
        await store.revoke(token)

    async def test_failed_connect_leaves_store_unavailable(self):
        store = ResetTokenStore(url="redis://127.0.0.1:1", enabled=True, timeout=0.5)
        await store.connect()

        assert store.available is False
        assert await store.resolve("abc") is None

    async def test_resolve_retries_once_then_gives_up(self):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("connection reset")
        store = ResetTokenStore(client)

        assert await store.resolve("abc") is None
        assert client.get.await_count == 2

    async def test_resolve_recovers_on_retry(self):
        client = AsyncMock()
        client.get.side_effect = [RedisConnectionError("connection reset"), "member-1"]
        store = ResetTokenStore(client)

        assert await store.resolve("abc") == "member-1"

    async def test_issue_swallows_write_errors(self):
        client = AsyncMock()
        client.set.side_effect = RedisConnectionError("connection reset")
        store = ResetTokenStore(client)

        token = await store.issue("member-1")

        assert len(token) == 64
        client.set.assert_awaited_once()

    async def test_revoke_swallows_errors(self):
        client = AsyncMock()
        client.delete.side_effect = RedisConnectionError("connection reset")
        store = ResetTokenStore(client)

        await store.revoke("abc")

    @pytest.mark.parametrize("ttl", [None, 30])
    async def test_issue_passes_ttl(self, ttl):
        client = AsyncMock()
        store = ResetTokenStore(client, ttl_seconds=600)

        token = await store.issue("member-1", ttl_seconds=ttl)

        client.set.assert_awaited_once_with(f"{KEY_PREFIX}{token}", "member-1", ex=ttl or 600)
