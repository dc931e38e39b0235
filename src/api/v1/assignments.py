# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment API endpoints.

- POST / - Create an assignment for a class
- GET /class/{class_id} - List a class's assignments
- GET /{assignment_id} - Assignment details (with exam questions)
- PUT /{assignment_id} - Update assignment
- DELETE /{assignment_id} - Delete assignment
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_assignment_service,
    get_query_params,
    require_auth,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.access_control import AccessDeniedError
from src.domains.assignment import (
    AssignmentNotFoundError,
    AssignmentService,
    AssignmentServiceError,
)
from src.domains.class_ import ClassNotFoundError
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentUpdateRequest,
)
from src.models.common import MessageResponse, PaginatedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_for(error: Exception) -> None:
    if isinstance(error, AccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, AssignmentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    if isinstance(error, ClassNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
)
async def create_assignment(
    data: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentResponse:
    """Create an assignment; students of the class are notified."""
    try:
        assignment = await service.create_assignment(data, current_user)
    except (AccessDeniedError, AssignmentServiceError, ClassNotFoundError) as e:
        _raise_for(e)
    return AssignmentResponse.model_validate(assignment)


@router.get(
    "/class/{class_id}",
    response_model=PaginatedResponse,
    summary="List class assignments",
)
async def list_class_assignments(
    class_id: UUID,
    params: dict[str, Any] = Depends(get_query_params),
    current_user: CurrentUser = Depends(require_auth),
    service: AssignmentService = Depends(get_assignment_service),
) -> dict[str, Any]:
    try:
        return await service.list_assignments_by_class(
            str(class_id), params, current_user
        )
    except (AccessDeniedError, ClassNotFoundError) as e:
        _raise_for(e)


@router.get("/{assignment_id}", summary="Get assignment")
async def get_assignment(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    service: AssignmentService = Depends(get_assignment_service),
) -> dict[str, Any]:
    try:
        return await service.get_assignment_details(str(assignment_id), current_user)
    except (AccessDeniedError, AssignmentServiceError) as e:
        _raise_for(e)


@router.put(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Update assignment",
)
async def update_assignment(
    assignment_id: UUID,
    data: AssignmentUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentResponse:
    try:
        assignment = await service.update_assignment(str(assignment_id), data, current_user)
    except (AccessDeniedError, AssignmentServiceError) as e:
        _raise_for(e)
    return AssignmentResponse.model_validate(assignment)


@router.delete(
    "/{assignment_id}",
    response_model=MessageResponse,
    summary="Delete assignment",
)
async def delete_assignment(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: AssignmentService = Depends(get_assignment_service),
) -> MessageResponse:
    try:
        await service.delete_assignment(str(assignment_id), current_user)
    except (AccessDeniedError, AssignmentServiceError) as e:
        _raise_for(e)
    return MessageResponse(message="Assignment deleted")
