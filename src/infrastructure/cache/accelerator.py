# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort read-through cache.

The accelerator never changes the outcome of a read or a write: without
a client every lookup is a miss, and any Redis failure is logged and
treated as a miss (reads) or ignored (writes, invalidations).
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from src.infrastructure.cache.redis_client import RedisClient, RedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

EXAMS_SCOPE = "exams"
QUESTIONS_SCOPE = "questions"


class CacheAccelerator:
    """Tenant-partitioned read-through cache.

    Attributes:
        client: Connected Redis client, or None when caching is off.
        default_ttl: TTL in seconds used when set() is given none.
    """

    def __init__(self, client: Optional[RedisClient], settings: "Settings") -> None:
        self.client = client
        self.default_ttl = settings.cache.ttl_short

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def get(self, tenant_id: str, scope: str, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or any cache failure."""
        if self.client is None:
            return None
        try:
            return await self.client.get_tenant_value(tenant_id, scope, key)
        except RedisError as e:
            logger.warning("Cache read failed for %s/%s/%s: %s", tenant_id, scope, key, e)
            return None

    async def set(
        self,
        tenant_id: str,
        scope: str,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
    ) -> None:
        """Store a value; failures are logged and ignored."""
        if self.client is None:
            return
        try:
            await self.client.set_tenant_value(
                tenant_id, scope, key, value, ttl or self.default_ttl
            )
        except RedisError as e:
            logger.warning("Cache write failed for %s/%s/%s: %s", tenant_id, scope, key, e)

    async def invalidate(self, tenant_id: Optional[str], *scopes: str) -> None:
        """Drop every cached entry of the given scopes for one tenant."""
        if self.client is None or not tenant_id:
            return
        for scope in scopes:
            try:
                removed = await self.client.delete_tenant_scope(tenant_id, scope)
                logger.debug("Invalidated %d cache keys in %s/%s", removed, tenant_id, scope)
            except RedisError as e:
                logger.warning("Cache invalidation failed for %s/%s: %s", tenant_id, scope, e)
