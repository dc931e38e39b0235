# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the tenant-partitioned cache."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.core.config import get_settings
from src.infrastructure.cache import (
    EXAMS_SCOPE,
    CacheAccelerator,
    RedisClient,
    RedisError,
    tenant_key,
)

TENANT = "550e8400-e29b-41d4-a716-446655440000"


async def _scan(keys):
    for key in keys:
        yield key


@pytest.fixture
def redis() -> MagicMock:
    """Mock redis.asyncio.Redis connection."""
    conn = MagicMock()
    conn.get = AsyncMock(return_value=None)
    conn.set = AsyncMock()
    conn.delete = AsyncMock(return_value=0)
    conn.ping = AsyncMock(return_value=True)
    conn.scan_iter = MagicMock(return_value=_scan([]))
    return conn


@pytest.fixture
def client(redis) -> RedisClient:
    client = RedisClient(get_settings())
    client._redis = redis
    return client


class TestTenantKeys:
    """Key layout."""

    def test_entry_key(self) -> None:
        assert tenant_key(TENANT, "exams", "exam-1") == f"tenant:{TENANT}:exams:exam-1"

    def test_scope_pattern(self) -> None:
        assert tenant_key(TENANT, "exams") == f"tenant:{TENANT}:exams:*"


class TestRedisClient:
    """JSON values under tenant keys."""

    @pytest.mark.asyncio
    async def test_set_serializes_with_ttl(self, client, redis) -> None:
        await client.set_tenant_value(TENANT, "exams", "exam-1", {"title": "Quiz"}, 60)

        redis.set.assert_awaited_once_with(
            f"tenant:{TENANT}:exams:exam-1", '{"title": "Quiz"}', ex=60
        )

    @pytest.mark.asyncio
    async def test_get_deserializes(self, client, redis) -> None:
        redis.get.return_value = '{"title": "Quiz"}'

        assert await client.get_tenant_value(TENANT, "exams", "exam-1") == {"title": "Quiz"}

    @pytest.mark.asyncio
    async def test_delete_scope(self, client, redis) -> None:
        redis.scan_iter.return_value = _scan(["k1", "k2"])
        redis.delete.return_value = 2

        assert await client.delete_tenant_scope(TENANT, "exams") == 2
        redis.scan_iter.assert_called_once_with(match=f"tenant:{TENANT}:exams:*")
        redis.delete.assert_awaited_once_with("k1", "k2")

    @pytest.mark.asyncio
    async def test_redis_failure_is_wrapped(self, client, redis) -> None:
        redis.get.side_effect = RedisConnectionError("down")

        with pytest.raises(RedisError, match="Failed to get key"):
            await client.get_tenant_value(TENANT, "exams", "exam-1")

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        client = RedisClient(get_settings())

        with pytest.raises(RedisError, match="not connected"):
            await client.get_tenant_value(TENANT, "exams", "exam-1")
        assert await client.ping() is False


class TestCacheAccelerator:
    """The accelerator never changes an operation's outcome."""

    @pytest.mark.asyncio
    async def test_disabled_cache_always_misses(self) -> None:
        cache = CacheAccelerator(None, get_settings())

        assert cache.enabled is False
        assert await cache.get(TENANT, EXAMS_SCOPE, "exam-1") is None
        await cache.set(TENANT, EXAMS_SCOPE, "exam-1", {"a": 1})
        await cache.invalidate(TENANT, EXAMS_SCOPE)

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self) -> None:
        client = MagicMock()
        client.get_tenant_value = AsyncMock(side_effect=RedisError("down"))
        cache = CacheAccelerator(client, get_settings())

        assert await cache.get(TENANT, EXAMS_SCOPE, "exam-1") is None

    @pytest.mark.asyncio
    async def test_write_uses_default_ttl(self) -> None:
        client = MagicMock()
        client.set_tenant_value = AsyncMock()
        cache = CacheAccelerator(client, get_settings())

        await cache.set(TENANT, EXAMS_SCOPE, "exam-1", {"a": 1})

        client.set_tenant_value.assert_awaited_once_with(
            TENANT, EXAMS_SCOPE, "exam-1", {"a": 1}, 300
        )

    @pytest.mark.asyncio
    async def test_invalidation_failure_is_ignored(self) -> None:
        client = MagicMock()
        client.delete_tenant_scope = AsyncMock(side_effect=RedisError("down"))
        cache = CacheAccelerator(client, get_settings())

        await cache.invalidate(TENANT, EXAMS_SCOPE, "questions")

        assert client.delete_tenant_scope.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidation_needs_tenant(self) -> None:
        client = MagicMock()
        client.delete_tenant_scope = AsyncMock()
        cache = CacheAccelerator(client, get_settings())

        await cache.invalidate(None, EXAMS_SCOPE)

        client.delete_tenant_scope.assert_not_awaited()
