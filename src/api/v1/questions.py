# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question bank API endpoints.

- POST / - Create a question
- GET / - List questions visible to the caller
- GET /{question_id} - Get question details
- PUT /{question_id} - Update question (creator or admin)
- DELETE /{question_id} - Delete question (creator or admin, not in use)
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_query_params,
    get_question_service,
    require_auth,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.access_control import AccessDeniedError
from src.domains.question import (
    InvalidAnswersError,
    QuestionConflictError,
    QuestionInUseError,
    QuestionNotFoundError,
    QuestionService,
    QuestionServiceError,
    SubjectNotFoundError,
)
from src.models.common import MessageResponse, PaginatedResponse
from src.models.question import (
    QuestionCreateRequest,
    QuestionResponse,
    QuestionUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_for(error: Exception) -> None:
    """Translate a question service error into an HTTP error."""
    if isinstance(error, AccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, QuestionNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    if isinstance(error, (QuestionInUseError, QuestionConflictError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, (InvalidAnswersError, SubjectNotFoundError)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.post(
    "",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create question",
)
async def create_question(
    data: QuestionCreateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: QuestionService = Depends(get_question_service),
) -> QuestionResponse:
    """Add a question to the caller's question bank."""
    try:
        question = await service.create_question(data, current_user)
    except (AccessDeniedError, QuestionServiceError) as e:
        _raise_for(e)
    return QuestionResponse.model_validate(question)


@router.get("", response_model=PaginatedResponse, summary="List questions")
async def list_questions(
    params: dict[str, Any] = Depends(get_query_params),
    current_user: CurrentUser = Depends(require_auth),
    service: QuestionService = Depends(get_question_service),
) -> dict[str, Any]:
    """List own and public questions; admins see the whole tenant bank.

    Supports field filters (difficulty=easy, tags=algebra), operator
    filters (created_at[gte]=...), search, sort, fields, page and limit.
    """
    return await service.list_questions(params, current_user)


@router.get("/{question_id}", summary="Get question")
async def get_question(
    question_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    service: QuestionService = Depends(get_question_service),
) -> dict[str, Any]:
    try:
        return await service.get_question(str(question_id), current_user)
    except (AccessDeniedError, QuestionServiceError) as e:
        _raise_for(e)


@router.put("/{question_id}", response_model=QuestionResponse, summary="Update question")
async def update_question(
    question_id: UUID,
    data: QuestionUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: QuestionService = Depends(get_question_service),
) -> QuestionResponse:
    try:
        question = await service.update_question(str(question_id), data, current_user)
    except (AccessDeniedError, QuestionServiceError) as e:
        _raise_for(e)
    return QuestionResponse.model_validate(question)


@router.delete("/{question_id}", response_model=MessageResponse, summary="Delete question")
async def delete_question(
    question_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: QuestionService = Depends(get_question_service),
) -> MessageResponse:
    """Delete a question. Questions still used by an exam cannot be deleted."""
    try:
        await service.delete_question(str(question_id), current_user)
    except (AccessDeniedError, QuestionServiceError) as e:
        _raise_for(e)
    return MessageResponse(message="Question deleted")
