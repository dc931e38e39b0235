# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

Tenant isolation is achieved via key prefixes: tenant:{tenant_id}:{scope}:*

Example:
    client = RedisClient(settings)
    await client.connect()
    cache = CacheAccelerator(client, settings)

    payload = await cache.get(tenant_id, EXAMS_SCOPE, exam_id)
    await cache.invalidate(tenant_id, EXAMS_SCOPE)
"""

from src.infrastructure.cache.accelerator import (
    EXAMS_SCOPE,
    QUESTIONS_SCOPE,
    CacheAccelerator,
)
from src.infrastructure.cache.redis_client import RedisClient, RedisError, tenant_key

__all__ = [
    "EXAMS_SCOPE",
    "QUESTIONS_SCOPE",
    "CacheAccelerator",
    "RedisClient",
    "RedisError",
    "tenant_key",
]
