# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam API endpoints.

- POST / - Create an exam (manual question list or automatic generation)
- GET / - List exams
- GET /{exam_id} - Exam details with subject, creator and ordered questions
- PUT /{exam_id} - Update exam header fields
- DELETE /{exam_id} - Delete exam and its question links
- POST /{exam_id}/questions - Append questions, skipping duplicates
- DELETE /{exam_id}/questions/{question_id} - Remove one question

Creating and changing exams requires teacher or admin access. Teachers
may read every exam of their school but only change their own.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import (
    get_exam_service,
    get_query_params,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.access_control import AccessDeniedError
from src.domains.exam import (
    DuplicateExamQuestionError,
    ExamConflictError,
    ExamNotFoundError,
    ExamQuestionNotFoundError,
    ExamService,
    ExamServiceError,
    InsufficientQuestionsError,
)
from src.domains.question import SubjectNotFoundError
from src.models.common import MessageResponse, PaginatedResponse
from src.models.exam import (
    AddExamQuestionsRequest,
    AddExamQuestionsResponse,
    ExamCreateRequest,
    ExamCreatedResponse,
    ExamDetailResponse,
    ExamResponse,
    ExamUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_for(error: Exception) -> None:
    """Translate an exam service error into an HTTP error."""
    if isinstance(error, AccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, ExamNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    if isinstance(error, ExamQuestionNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (DuplicateExamQuestionError, ExamConflictError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, InsufficientQuestionsError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": error.message, **error.details},
        )
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.post(
    "",
    response_model=ExamCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create exam",
    description=(
        "Create an exam from an explicit question list, or set "
        "auto_generate to sample the question bank by difficulty. "
        "Nothing is stored if any part of the exam cannot be created."
    ),
)
async def create_exam(
    data: ExamCreateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> ExamCreatedResponse:
    logger.info(
        "Creating exam '%s' (%s) by %s",
        data.title,
        "auto" if data.is_auto else "manual",
        current_user.id,
    )
    try:
        exam = await service.create_exam(data, current_user)
    except (AccessDeniedError, ExamServiceError, SubjectNotFoundError) as e:
        _raise_for(e)

    question_count = (
        data.auto_generate.total_questions if data.is_auto else len(data.questions or [])
    )
    return ExamCreatedResponse(
        exam=ExamResponse.model_validate(exam),
        question_count=question_count,
    )


@router.get("", response_model=PaginatedResponse, summary="List exams")
async def list_exams(
    params: dict[str, Any] = Depends(get_query_params),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    """List the caller's exams; admins see every exam of the school."""
    return await service.list_exams(params, current_user)


@router.get("/{exam_id}", response_model=ExamDetailResponse, summary="Get exam")
async def get_exam(
    exam_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    try:
        return await service.get_exam_details(str(exam_id), current_user)
    except (AccessDeniedError, ExamServiceError) as e:
        _raise_for(e)


@router.put("/{exam_id}", response_model=ExamResponse, summary="Update exam")
async def update_exam(
    exam_id: UUID,
    data: ExamUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> ExamResponse:
    try:
        exam = await service.update_exam(str(exam_id), data, current_user)
    except (AccessDeniedError, ExamServiceError) as e:
        _raise_for(e)
    return ExamResponse.model_validate(exam)


@router.delete("/{exam_id}", response_model=MessageResponse, summary="Delete exam")
async def delete_exam(
    exam_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> MessageResponse:
    try:
        await service.delete_exam(str(exam_id), current_user)
    except (AccessDeniedError, ExamServiceError) as e:
        _raise_for(e)
    return MessageResponse(message="Exam deleted")


@router.post(
    "/{exam_id}/questions",
    response_model=AddExamQuestionsResponse,
    summary="Add questions to exam",
    description=(
        "Append questions to an exam. Questions already in the exam are "
        "skipped; the response is 207 when some were skipped."
    ),
)
async def add_exam_questions(
    exam_id: UUID,
    data: AddExamQuestionsRequest,
    response: Response,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> AddExamQuestionsResponse:
    try:
        outcome = await service.link_questions_best_effort(
            str(exam_id), data.questions, current_user
        )
    except (AccessDeniedError, ExamServiceError) as e:
        _raise_for(e)

    if outcome.skipped:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return AddExamQuestionsResponse(
        requested=outcome.requested,
        added=outcome.added,
        skipped=outcome.skipped,
    )


@router.delete(
    "/{exam_id}/questions/{question_id}",
    response_model=MessageResponse,
    summary="Remove question from exam",
)
async def remove_exam_question(
    exam_id: UUID,
    question_id: UUID,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: ExamService = Depends(get_exam_service),
) -> MessageResponse:
    try:
        await service.remove_question_from_exam(str(exam_id), str(question_id), current_user)
    except (AccessDeniedError, ExamServiceError) as e:
        _raise_for(e)
    return MessageResponse(message="Question removed from exam")
