# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class membership service.

This module provides the ClassService class for:
- Adding and removing class members with a per-class role
- Looking up an actor's role in a class (used by assignment visibility,
  submission and grading checks)
- Listing the student ids of a class (used for notifications)
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Class, ClassUser, User
from src.infrastructure.database.query import TenantScope
from src.infrastructure.database.transaction import atomic
from src.models.common import ClassRole

logger = logging.getLogger(__name__)


class ClassServiceError(Exception):
    """Base exception for class service errors."""

    pass


class ClassNotFoundError(ClassServiceError):
    """Raised when class is not found."""

    pass


class MemberUserNotFoundError(ClassServiceError):
    """Raised when the user to add does not exist in the class's tenant."""

    pass


class MembershipExistsError(ClassServiceError):
    """Raised when the user is already a member of the class."""

    pass


class MembershipNotFoundError(ClassServiceError):
    """Raised when the user is not a member of the class."""

    pass


class ClassService:
    """Service for class membership.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_class(self, class_id: str, scope: TenantScope) -> Class:
        """Get a class visible within scope.

        Raises:
            ClassNotFoundError: If the class does not exist in scope.
        """
        stmt = scope.select(Class).where(Class.id == class_id)
        result = await self.db.execute(stmt)
        class_ = result.scalar_one_or_none()
        if class_ is None:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_

    async def get_role(self, class_id: str, user_id: str) -> Optional[str]:
        """Role of user_id in class_id, or None when not a member."""
        stmt = select(ClassUser.role_in_class).where(
            and_(ClassUser.class_id == class_id, ClassUser.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_student_ids(self, class_id: str) -> list[str]:
        """Ids of every student member of the class."""
        stmt = select(ClassUser.user_id).where(
            and_(
                ClassUser.class_id == class_id,
                ClassUser.role_in_class == ClassRole.STUDENT.value,
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_members(self, class_id: str, scope: TenantScope) -> list[ClassUser]:
        """Every membership row of a class, teachers first.

        Raises:
            ClassNotFoundError: If the class does not exist in scope.
        """
        await self.get_class(class_id, scope)
        stmt = (
            select(ClassUser)
            .where(ClassUser.class_id == class_id)
            .order_by(ClassUser.role_in_class.desc(), ClassUser.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add_member(
        self,
        class_id: str,
        user_id: str,
        role_in_class: ClassRole,
        scope: TenantScope,
    ) -> ClassUser:
        """Add a user to a class.

        Args:
            class_id: Target class.
            user_id: User to add; must belong to the class's tenant.
            role_in_class: teacher or student.
            scope: Actor's tenant scope.

        Returns:
            The created membership.

        Raises:
            ClassNotFoundError: If the class does not exist in scope.
            MemberUserNotFoundError: If the user is not in the class's tenant.
            MembershipExistsError: If the user is already a member.
        """
        class_ = await self.get_class(class_id, scope)

        user_result = await self.db.execute(
            select(User).where(and_(User.id == user_id, User.tenant_id == class_.tenant_id))
        )
        if user_result.scalar_one_or_none() is None:
            raise MemberUserNotFoundError(f"User {user_id} not found in this school")

        if await self.get_role(class_id, user_id) is not None:
            raise MembershipExistsError(f"User {user_id} is already a member of class {class_id}")

        membership = ClassUser(
            tenant_id=class_.tenant_id,
            class_id=class_id,
            user_id=user_id,
            role_in_class=role_in_class.value,
        )
        try:
            async with atomic(self.db):
                self.db.add(membership)
        except IntegrityError as e:
            raise MembershipExistsError(
                f"User {user_id} is already a member of class {class_id}"
            ) from e

        logger.info(
            "Added user %s to class %s as %s",
            user_id,
            class_id,
            role_in_class.value,
        )
        return membership

    async def remove_member(self, class_id: str, user_id: str, scope: TenantScope) -> None:
        """Remove a user from a class.

        Raises:
            ClassNotFoundError: If the class does not exist in scope.
            MembershipNotFoundError: If the user is not a member.
        """
        await self.get_class(class_id, scope)

        async with atomic(self.db):
            result = await self.db.execute(
                delete(ClassUser).where(
                    and_(ClassUser.class_id == class_id, ClassUser.user_id == user_id)
                )
            )
            if result.rowcount == 0:
                raise MembershipNotFoundError(
                    f"User {user_id} is not a member of class {class_id}"
                )

        logger.info("Removed user %s from class %s", user_id, class_id)
