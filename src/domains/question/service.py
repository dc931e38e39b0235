# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question bank service.

This module provides the QuestionService class for:
- Creating questions with the multiple-choice answer rule enforced
- Listing questions through the query pipeline ("mine or public" for
  non-admins, the whole tenant for admins)
- Reading one question (read-through cached)
- Updating and deleting questions (creator or admin only)

A question still placed in any exam cannot be deleted; remove it from
those exams first.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.core.config.settings import PaginationSettings
from src.domains.access_control import (
    ResourceType,
    actor_tenant,
    ensure_access,
    ensure_mutation,
    is_admin,
)
from src.infrastructure.cache import EXAMS_SCOPE, QUESTIONS_SCOPE, CacheAccelerator
from src.infrastructure.database.models import ExamQuestion, Question, Subject, User
from src.infrastructure.database.query import Populate, QueryPipeline, TenantScope, row_to_dict
from src.infrastructure.database.transaction import atomic
from src.infrastructure.events import EventBus, EventTypes, publish_safely
from src.models.common import QuestionType
from src.models.question import AnswerOption, QuestionCreateRequest, QuestionUpdateRequest

logger = logging.getLogger(__name__)

SUBJECT_FIELDS = ("name", "description")
CREATOR_FIELDS = ("full_name", "email")
NULLABLE_FIELDS = frozenset({"image_url"})


class QuestionServiceError(Exception):
    """Base exception for question service errors."""

    pass


class QuestionNotFoundError(QuestionServiceError):
    """Raised when a question is not found."""

    pass


class SubjectNotFoundError(QuestionServiceError):
    """Raised when the referenced subject does not exist in the tenant."""

    pass


class InvalidAnswersError(QuestionServiceError):
    """Raised when a multiple-choice question has a malformed answer list."""

    pass


class QuestionInUseError(QuestionServiceError):
    """Raised when deleting a question still placed in an exam."""

    pass


class QuestionConflictError(QuestionServiceError):
    """Raised when the question changed concurrently during an update."""

    pass


def validate_answers(question_type: str, answers: Sequence[Any]) -> None:
    """Check the answer rule for a question type.

    Multiple-choice questions need at least two answers and exactly one
    marked correct. Essays carry no constraint.

    Args:
        question_type: multiple_choice or essay.
        answers: AnswerOption models or {"text", "is_correct"} dicts.

    Raises:
        InvalidAnswersError: If the rule is violated.
    """
    if question_type != QuestionType.MULTIPLE_CHOICE.value:
        return

    if len(answers) < 2:
        raise InvalidAnswersError("Multiple choice questions need at least 2 answers")

    correct = 0
    for answer in answers:
        flag = answer.is_correct if isinstance(answer, AnswerOption) else answer.get("is_correct")
        if flag is True:
            correct += 1
    if correct != 1:
        raise InvalidAnswersError("Multiple choice questions need exactly 1 correct answer")


def _answers_payload(answers: Sequence[AnswerOption]) -> list[dict[str, Any]]:
    return [answer.model_dump() for answer in answers]


def question_detail(question: Question) -> dict[str, Any]:
    """Question row with subject and creator embedded."""
    item = row_to_dict(question)
    item["subject"] = row_to_dict(question.subject, SUBJECT_FIELDS) if question.subject else None
    item["creator"] = row_to_dict(question.creator, CREATOR_FIELDS) if question.creator else None
    return item


class QuestionService:
    """Service for the question bank.

    Attributes:
        db: Async database session.
        cache: Read-through cache accelerator, optional.
        events: Event bus for change notifications, optional.
        pagination: Paging defaults for list endpoints.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[CacheAccelerator] = None,
        events: Optional[EventBus] = None,
        pagination: Optional[PaginationSettings] = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.events = events
        self.pagination = pagination or PaginationSettings()

    async def _get(self, question_id: str, with_relations: bool = False) -> Question:
        stmt = select(Question).where(Question.id == question_id)
        if with_relations:
            stmt = stmt.options(
                selectinload(Question.subject),
                selectinload(Question.creator),
            )
        result = await self.db.execute(stmt)
        question = result.scalar_one_or_none()
        if question is None:
            raise QuestionNotFoundError(f"Question {question_id} not found")
        return question

    async def _ensure_subject(self, subject_id: str, tenant_id: str) -> None:
        result = await self.db.execute(
            select(Subject.id).where(and_(Subject.id == subject_id, Subject.tenant_id == tenant_id))
        )
        if result.scalar_one_or_none() is None:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

    async def _invalidate(self, tenant_id: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate(tenant_id, QUESTIONS_SCOPE, EXAMS_SCOPE)

    async def create_question(self, request: QuestionCreateRequest, actor: Any) -> Question:
        """Add a question to the actor's tenant bank.

        Args:
            request: Question data.
            actor: Authenticated author.

        Returns:
            The created question.

        Raises:
            AccessDeniedError: If the actor has no tenant.
            InvalidAnswersError: If the answer rule is violated.
            SubjectNotFoundError: If the subject is not in the tenant.
        """
        tenant_id = actor_tenant(actor)
        validate_answers(request.type.value, request.answers)
        await self._ensure_subject(request.subject_id, tenant_id)

        question = Question(
            tenant_id=tenant_id,
            subject_id=request.subject_id,
            topic=request.topic,
            difficulty=request.difficulty.value,
            type=request.type.value,
            content=request.content,
            answers=_answers_payload(request.answers),
            image_url=request.image_url,
            tags=list(request.tags),
            is_public=request.is_public,
            created_by=actor.id,
        )
        async with atomic(self.db):
            self.db.add(question)

        logger.info("Question created: %s by %s", question.id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Question.CREATED,
            {"question_id": question.id, "created_by": actor.id},
            tenant_id=tenant_id,
        )
        return question

    async def list_questions(self, params: dict[str, Any], actor: Any) -> dict[str, Any]:
        """List questions visible to the actor.

        Non-admins see their own questions plus public ones; admins see
        every question of their tenant.

        Args:
            params: Raw query parameters (filters, search, sort, paging).
            actor: Authenticated actor.

        Returns:
            {"data": [...], "pagination": {...}}.

        Raises:
            InvalidQueryError: If a filter is malformed.
        """
        pre_filter = None
        if not is_admin(actor):
            pre_filter = or_(Question.is_public.is_(True), Question.created_by == actor.id)

        pipeline = QueryPipeline(
            self.db,
            Question,
            TenantScope.for_actor(actor),
            default_limit=self.pagination.default_limit,
            max_limit=self.pagination.max_limit,
        )
        return await pipeline.execute(
            params,
            pre_filter=pre_filter,
            populate=[
                Populate("subject", SUBJECT_FIELDS),
                Populate("creator", CREATOR_FIELDS),
            ],
        )

    async def get_question(self, question_id: str, actor: Any) -> dict[str, Any]:
        """Read one question with subject and creator expanded.

        Raises:
            QuestionNotFoundError: If the question does not exist.
            AccessDeniedError: If the actor may not view it.
        """
        if self.cache is not None and actor.tenant_id:
            cached = await self.cache.get(actor.tenant_id, QUESTIONS_SCOPE, question_id)
            if cached is not None:
                ensure_access(ResourceType.QUESTION, cached, actor)
                return cached

        question = await self._get(question_id, with_relations=True)
        ensure_access(ResourceType.QUESTION, question, actor)

        detail = question_detail(question)
        if self.cache is not None and actor.tenant_id == question.tenant_id:
            await self.cache.set(question.tenant_id, QUESTIONS_SCOPE, question_id, detail)
        return detail

    async def update_question(
        self,
        question_id: str,
        request: QuestionUpdateRequest,
        actor: Any,
    ) -> Question:
        """Update a question.

        The answer rule is checked again only when the answers are
        replaced or the question becomes multiple choice.

        Raises:
            QuestionNotFoundError: If the question does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            InvalidAnswersError: If the new answers violate the rule.
            SubjectNotFoundError: If a new subject is not in the tenant.
            QuestionConflictError: If the row changed concurrently.
        """
        question = await self._get(question_id)
        ensure_mutation(ResourceType.QUESTION, question, actor)

        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True, mode="json").items()
            if value is not None or key in NULLABLE_FIELDS
        }
        new_type = changes.get("type", question.type)
        if "answers" in changes:
            validate_answers(new_type, changes["answers"])
        elif new_type != question.type:
            validate_answers(new_type, question.answers or [])

        if changes.get("subject_id") and changes["subject_id"] != question.subject_id:
            await self._ensure_subject(changes["subject_id"], question.tenant_id)

        try:
            async with atomic(self.db):
                for field_name, value in changes.items():
                    setattr(question, field_name, value)
        except StaleDataError as e:
            raise QuestionConflictError(
                f"Question {question_id} was modified concurrently"
            ) from e

        await self._invalidate(question.tenant_id)
        logger.info("Question updated: %s by %s", question_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Question.UPDATED,
            {"question_id": question_id, "updated_by": actor.id},
            tenant_id=question.tenant_id,
        )
        return question

    async def delete_question(self, question_id: str, actor: Any) -> None:
        """Delete a question that no exam uses.

        Raises:
            QuestionNotFoundError: If the question does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            QuestionInUseError: If any exam still contains the question.
        """
        question = await self._get(question_id)
        ensure_mutation(ResourceType.QUESTION, question, actor)

        in_use = await self.db.execute(
            select(exists().where(ExamQuestion.question_id == question_id))
        )
        if in_use.scalar():
            raise QuestionInUseError(
                f"Question {question_id} is used by at least one exam; remove it from exams first"
            )

        try:
            async with atomic(self.db):
                await self.db.delete(question)
        except IntegrityError as e:
            raise QuestionInUseError(
                f"Question {question_id} is used by at least one exam; remove it from exams first"
            ) from e

        await self._invalidate(question.tenant_id)
        logger.info("Question deleted: %s by %s", question_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Question.DELETED,
            {"question_id": question_id, "deleted_by": actor.id},
            tenant_id=question.tenant_id,
        )
