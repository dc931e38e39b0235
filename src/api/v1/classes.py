# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class membership API endpoints.

- GET /{class_id}/members - List class members
- POST /{class_id}/members - Add a teacher or student to a class
- DELETE /{class_id}/members/{user_id} - Remove a member

Managing membership requires school admin access. School admins can
only manage classes in their own school.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_class_service, require_admin, require_teacher_or_admin
from src.api.middleware.auth import CurrentUser
from src.domains.class_ import (
    ClassNotFoundError,
    ClassService,
    ClassServiceError,
    MemberUserNotFoundError,
    MembershipExistsError,
    MembershipNotFoundError,
)
from src.infrastructure.database.query import TenantScope, TenantScopeRequiredError
from src.models.class_ import AddMemberRequest, ClassMemberResponse
from src.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _scope(current_user: CurrentUser) -> TenantScope:
    try:
        return TenantScope.for_actor(current_user)
    except TenantScopeRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get(
    "/{class_id}/members",
    response_model=list[ClassMemberResponse],
    summary="List class members",
)
async def list_members(
    class_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ClassService = Depends(get_class_service),
) -> list[ClassMemberResponse]:
    try:
        members = await service.list_members(str(class_id), _scope(current_user))
    except ClassNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return [ClassMemberResponse.model_validate(member) for member in members]


@router.post(
    "/{class_id}/members",
    response_model=ClassMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add class member",
)
async def add_member(
    class_id: UUID,
    data: AddMemberRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: ClassService = Depends(get_class_service),
) -> ClassMemberResponse:
    logger.info(
        "Adding %s to class %s as %s by %s",
        data.user_id,
        class_id,
        data.role_in_class.value,
        current_user.id,
    )
    try:
        membership = await service.add_member(
            str(class_id),
            data.user_id,
            data.role_in_class,
            _scope(current_user),
        )
    except ClassNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    except MemberUserNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except MembershipExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except ClassServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ClassMemberResponse.model_validate(membership)


@router.delete(
    "/{class_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove class member",
)
async def remove_member(
    class_id: UUID,
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    try:
        await service.remove_member(str(class_id), str(user_id), _scope(current_user))
    except ClassNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    except MembershipNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return MessageResponse(message="Member removed")
