# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission API endpoints.

Student endpoints:
- POST / - Submit (or resubmit before grading) an assignment
- GET /my/submissions - List own submissions
- GET /my/{assignment_id} - Own submission for one assignment

Grading endpoints (assignment creator, class teacher or admin):
- GET /assignment/{assignment_id} - List submissions of an assignment
- PUT /{submission_id}/grade - Grade a submission
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_query_params,
    get_submission_service,
    require_student,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.access_control import AccessDeniedError
from src.domains.assignment import AssignmentNotFoundError
from src.domains.submission import (
    SubmissionLockedError,
    SubmissionNotFoundError,
    SubmissionService,
    SubmissionServiceError,
)
from src.models.common import PaginatedResponse
from src.models.submission import GradeRequest, SubmissionResponse, SubmitRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_for(error: Exception) -> None:
    if isinstance(error, AccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, AssignmentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    if isinstance(error, SubmissionNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, SubmissionLockedError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit assignment",
)
async def submit_assignment(
    data: SubmitRequest,
    current_user: CurrentUser = Depends(require_student),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    """Store the caller's submission.

    Resubmitting replaces the answers and file until the submission is
    graded; the original submission time is kept.
    """
    try:
        submission = await service.submit(data, current_user)
    except (AccessDeniedError, AssignmentNotFoundError, SubmissionServiceError) as e:
        _raise_for(e)
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/assignment/{assignment_id}",
    response_model=PaginatedResponse,
    summary="List assignment submissions",
)
async def list_assignment_submissions(
    assignment_id: UUID,
    params: dict[str, Any] = Depends(get_query_params),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: SubmissionService = Depends(get_submission_service),
) -> dict[str, Any]:
    try:
        return await service.list_for_assignment(str(assignment_id), params, current_user)
    except (AccessDeniedError, AssignmentNotFoundError) as e:
        _raise_for(e)


@router.put(
    "/{submission_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    submission_id: UUID,
    data: GradeRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    try:
        submission = await service.grade(str(submission_id), data, current_user)
    except (AccessDeniedError, SubmissionServiceError) as e:
        _raise_for(e)
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/my/submissions",
    response_model=PaginatedResponse,
    summary="List my submissions",
)
async def list_my_submissions(
    params: dict[str, Any] = Depends(get_query_params),
    current_user: CurrentUser = Depends(require_student),
    service: SubmissionService = Depends(get_submission_service),
) -> dict[str, Any]:
    return await service.list_my_submissions(params, current_user)


@router.get("/my/{assignment_id}", summary="Get my submission")
async def get_my_submission(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_student),
    service: SubmissionService = Depends(get_submission_service),
) -> dict[str, Any]:
    try:
        return await service.get_my_submission(str(assignment_id), current_user)
    except SubmissionServiceError as e:
        _raise_for(e)
