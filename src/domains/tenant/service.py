# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant lookup and capacity service.

Billing and approval workflows belong to the subscription service; this
module only reads tenants and answers the capacity questions user
creation depends on.
"""

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Tenant, User
from src.models.common import UserRole

logger = logging.getLogger(__name__)


class TenantServiceError(Exception):
    """Base exception for tenant service errors."""

    pass


class TenantNotFoundError(TenantServiceError):
    """Raised when a tenant is not found."""

    pass


class TenantService:
    """Read access to tenants.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_tenant_by_id(self, tenant_id: str, *, for_update: bool = False) -> Tenant:
        """Get a tenant.

        Args:
            tenant_id: Tenant to load.
            for_update: Lock the tenant row until the current transaction
                ends. Writers that check a per-tenant limit take this lock
                so concurrent checks run one after another.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
        """
        stmt = select(Tenant).where(Tenant.id == tenant_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        tenant = result.scalar_one_or_none()
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def count_students(self, tenant_id: str) -> int:
        """Number of student users in a tenant."""
        result = await self.db.execute(
            select(func.count())
            .select_from(User)
            .where(and_(User.tenant_id == tenant_id, User.role == UserRole.STUDENT.value))
        )
        return int(result.scalar_one())

    async def has_student_capacity(self, tenant: Tenant) -> bool:
        """Whether one more student fits under the tenant's cap."""
        current = await self.count_students(tenant.id)
        logger.debug(
            "Tenant %s has %d/%d students",
            tenant.id,
            current,
            tenant.student_capacity,
        )
        return current < tenant.student_capacity
