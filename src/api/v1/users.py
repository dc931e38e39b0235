# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API endpoints.

- POST / - Create a user in a school
- GET /{user_id} - Get user details

Example:
    POST /api/v1/users
    {
        "email": "student@school.com",
        "full_name": "Jane Doe",
        "role": "student"
    }

School admins create users in their own school. Platform admins act
across schools and name the target school with ?tenant_id=.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import get_user_service, require_admin
from src.api.middleware.auth import CurrentUser
from src.domains.tenant import TenantNotFoundError
from src.domains.user import (
    EmailExistsError,
    InvalidRoleError,
    StudentLimitReachedError,
    TenantNotApprovedError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)
from src.models.common import UserRole
from src.models.user import UserCreateRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _target_tenant(current_user: CurrentUser, tenant_id: Optional[str]) -> str:
    """Resolve which tenant the request acts on."""
    if current_user.role == UserRole.SYS_ADMIN.value:
        target = tenant_id or current_user.tenant_id
        if not target:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="tenant_id is required",
            )
        return target
    if tenant_id and tenant_id != current_user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot manage users of another school",
        )
    return current_user.tenant_id


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreateRequest,
    tenant_id: Optional[UUID] = Query(None, description="Target school (platform admins only)"),
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Create a user.

    Student accounts are limited by the school's plan capacity, and
    only approved schools can receive users.
    """
    target = _target_tenant(current_user, str(tenant_id) if tenant_id else None)
    logger.info("Creating %s user in tenant %s by %s", data.role.value, target, current_user.id)

    try:
        user = await service.create_user(data, target)
    except TenantNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not found",
        )
    except (TenantNotApprovedError, StudentLimitReachedError) as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    except EmailExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except (InvalidRoleError, UserServiceError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    scope_tenant = None if current_user.role == UserRole.SYS_ADMIN.value else current_user.tenant_id
    try:
        user = await service.get_user(str(user_id), tenant_id=scope_tenant)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserResponse.model_validate(user)
