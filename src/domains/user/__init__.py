# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package.

Example:
    >>> from src.domains.user import UserService
    >>> service = UserService(db)
    >>> user = await service.create_user(request, tenant_id)
"""

from src.domains.user.service import (
    EmailExistsError,
    InvalidRoleError,
    StudentLimitReachedError,
    TenantNotApprovedError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)

__all__ = [
    "EmailExistsError",
    "InvalidRoleError",
    "StudentLimitReachedError",
    "TenantNotApprovedError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
]
