# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for tenant user management.

This module provides the UserService that handles:
- User creation inside an approved tenant
- Global email uniqueness
- The tenant's student cap when creating student users

Credentials are issued by the external identity provider; the service
stores whatever hash it is handed and never sees a password.

Example:
    >>> user_service = UserService(db_session)
    >>> user = await user_service.create_user(request, tenant_id)
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.tenant.service import TenantService
from src.infrastructure.database.models import User
from src.infrastructure.database.transaction import atomic
from src.models.common import UserRole, UserStatus
from src.models.user import UserCreateRequest

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user is not found."""

    pass


class EmailExistsError(UserServiceError):
    """Raised when trying to create a user with an existing email."""

    pass


class TenantNotApprovedError(UserServiceError):
    """Raised when the target tenant is not approved yet."""

    pass


class StudentLimitReachedError(UserServiceError):
    """Raised when the tenant's student cap is reached."""

    pass


class InvalidRoleError(UserServiceError):
    """Raised when the requested role cannot be created inside a tenant."""

    pass


class UserService:
    """Service for managing tenant users.

    Attributes:
        db: Async database session.
        tenants: Tenant lookups used for approval and capacity checks.
    """

    def __init__(self, db: AsyncSession, tenants: Optional[TenantService] = None) -> None:
        self.db = db
        self.tenants = tenants or TenantService(db)

    async def get_user(self, user_id: str, tenant_id: Optional[str] = None) -> User:
        """Get a user, optionally restricted to one tenant.

        Raises:
            UserNotFoundError: If no such user exists.
        """
        stmt = select(User).where(User.id == user_id)
        if tenant_id is not None:
            stmt = stmt.where(User.tenant_id == tenant_id)
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def create_user(self, request: UserCreateRequest, tenant_id: str) -> User:
        """Create a user in a tenant.

        Args:
            request: User creation data.
            tenant_id: Tenant the user joins.

        Returns:
            The created user.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
            TenantNotApprovedError: If the tenant is not approved.
            InvalidRoleError: If request.role is sys_admin.
            EmailExistsError: If the email is already registered.
            StudentLimitReachedError: If a student would exceed the cap.
        """
        if request.role == UserRole.SYS_ADMIN:
            raise InvalidRoleError("Platform administrators cannot be created inside a school")

        email = request.email.lower()
        user = User(
            tenant_id=tenant_id,
            email=email,
            full_name=request.full_name,
            role=request.role.value,
            password_hash=request.password_hash,
            status=UserStatus.ACTIVE.value,
        )
        try:
            async with atomic(self.db):
                # Row lock serialises the student count against other creations.
                tenant = await self.tenants.get_tenant_by_id(tenant_id, for_update=True)
                if not tenant.is_approved:
                    raise TenantNotApprovedError(f"Tenant {tenant_id} is not approved")

                existing = await self.db.execute(select(User.id).where(User.email == email))
                if existing.scalar_one_or_none() is not None:
                    raise EmailExistsError(f"Email {email} is already registered")

                if request.role == UserRole.STUDENT and not await self.tenants.has_student_capacity(
                    tenant
                ):
                    raise StudentLimitReachedError(
                        f"Student limit of {tenant.student_capacity} reached for this school"
                    )

                self.db.add(user)
        except IntegrityError as e:
            raise EmailExistsError(f"Email {email} is already registered") from e

        logger.info("Created user %s (%s) in tenant %s", user.id, user.role, tenant_id)
        return user
