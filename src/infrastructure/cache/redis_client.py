# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async Redis client with tenant-partitioned keys.

Every cached entity lives under tenant:{tenant_id}:{scope}:{key}, so one
tenant's entries can never be read through another tenant's key, and a
whole scope (for example every cached exam of a tenant) can be dropped
with one pattern delete.

The client is created in the application lifespan and injected; it is
never reached through module state.
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def tenant_key(tenant_id: str, scope: str, key: str = "*") -> str:
    """Build the storage key for a tenant-scoped cache entry."""
    return f"{RedisClient.TENANT_KEY_PREFIX}:{tenant_id}:{scope}:{key}"


class RedisClient:
    """Thin wrapper over redis.asyncio with JSON values and tenant keys.

    Example:
        client = RedisClient(settings)
        await client.connect()
        await client.set_tenant_value(tenant_id, "exams", exam_id, payload, 300)
        payload = await client.get_tenant_value(tenant_id, "exams", exam_id)
        await client.delete_tenant_scope(tenant_id, "exams")
        await client.close()
    """

    TENANT_KEY_PREFIX = "tenant"

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the connection pool and verify it answers.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Release the connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    @staticmethod
    def _serialize(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def _deserialize(value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def get_tenant_value(self, tenant_id: str, scope: str, key: str) -> Any:
        """Read one cached value.

        Returns:
            The decoded value, or None on a miss.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        full_key = tenant_key(tenant_id, scope, key)
        try:
            return self._deserialize(await redis.get(full_key))
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {full_key}", e) from e

    async def set_tenant_value(
        self,
        tenant_id: str,
        scope: str,
        key: str,
        value: Any,
        expire_seconds: Optional[int] = None,
    ) -> None:
        """Store one value as JSON, optionally with a TTL.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        full_key = tenant_key(tenant_id, scope, key)
        try:
            await redis.set(full_key, self._serialize(value), ex=expire_seconds)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key: {full_key}", e) from e

    async def delete_tenant_scope(self, tenant_id: str, scope: str) -> int:
        """Delete every key of one tenant scope.

        Returns:
            Number of keys deleted.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        pattern = tenant_key(tenant_id, scope)
        try:
            keys = [key async for key in redis.scan_iter(match=pattern)]
            if keys:
                return await redis.delete(*keys)
            return 0
        except BaseRedisError as e:
            raise RedisError(f"Failed to delete keys matching: {pattern}", e) from e

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False
