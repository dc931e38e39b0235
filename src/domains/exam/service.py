# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam composition service.

This module provides the ExamService class for:
- Creating an exam from an explicit question list (create_exam_atomic)
- Creating an exam by stratified sampling of the bank (generate_auto_exam)
- Appending questions to an exam, skipping duplicates (link_questions_best_effort)
- Removing a question from an exam, updating and deleting exams
- Reading exam details and listing exams

The two creation paths and the delete path are atomic: the exam row and
its question links are committed together or not at all. Appending is
deliberately lenient and runs each link in its own savepoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import and_, delete, func, select
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
from src.domains.exam.exceptions import (
    DuplicateExamQuestionError,
    ExamConflictError,
    ExamNotFoundError,
    ExamQuestionNotFoundError,
    ExamQuestionsNotFoundError,
    InvalidExamError,
)
from src.domains.exam.sampling import plan_auto_exam
from src.domains.question.service import SubjectNotFoundError
from src.infrastructure.cache import EXAMS_SCOPE, CacheAccelerator
from src.infrastructure.database.models import Exam, ExamQuestion, Question, Subject, new_id
from src.infrastructure.database.query import Populate, QueryPipeline, TenantScope, row_to_dict
from src.infrastructure.database.transaction import atomic, savepoint
from src.infrastructure.events import EventBus, EventTypes, publish_safely
from src.models.exam import ExamCreateRequest, ExamQuestionEntry, ExamUpdateRequest

logger = logging.getLogger(__name__)

SUBJECT_FIELDS = ("name", "description")
CREATOR_FIELDS = ("full_name", "email")
QUESTION_FIELDS = ("topic", "difficulty", "type", "content", "answers", "image_url", "tags")


@dataclass(frozen=True)
class LinkResult:
    """Outcome of a best-effort link batch."""

    requested: int
    added: int

    @property
    def skipped(self) -> int:
        return self.requested - self.added


@dataclass(frozen=True)
class _Link:
    question_id: str
    points: float
    order: int


class ExamService:
    """Service for composing and managing exams.

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

    # ========== Lookups ==========

    async def _get_exam(self, exam_id: str) -> Exam:
        result = await self.db.execute(select(Exam).where(Exam.id == exam_id))
        exam = result.scalar_one_or_none()
        if exam is None:
            raise ExamNotFoundError(f"Exam {exam_id} not found")
        return exam

    async def _ensure_subject(self, subject_id: str, tenant_id: str) -> None:
        result = await self.db.execute(
            select(Subject.id).where(and_(Subject.id == subject_id, Subject.tenant_id == tenant_id))
        )
        if result.scalar_one_or_none() is None:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

    async def _ensure_questions(self, question_ids: Iterable[str], tenant_id: str) -> None:
        wanted = set(question_ids)
        result = await self.db.execute(
            select(Question.id).where(
                and_(Question.id.in_(wanted), Question.tenant_id == tenant_id)
            )
        )
        missing = wanted - set(result.scalars().all())
        if missing:
            raise ExamQuestionsNotFoundError(
                "Some questions do not exist in this school",
                {"question_ids": sorted(missing)},
            )

    async def _invalidate(self, tenant_id: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate(tenant_id, EXAMS_SCOPE)

    # ========== Creation ==========

    def _new_exam(self, request: ExamCreateRequest, tenant_id: str, actor: Any) -> Exam:
        return Exam(
            id=new_id(),
            tenant_id=tenant_id,
            title=request.title,
            subject_id=request.subject_id,
            duration=request.duration,
            total_points=request.total_points,
            is_randomized=request.is_randomized,
            created_by=actor.id,
        )

    async def _write_exam(self, exam: Exam, links: Sequence[_Link]) -> None:
        """Insert the exam and all of its links as one atomic unit."""
        try:
            async with atomic(self.db):
                self.db.add(exam)
                await self.db.flush()
                self.db.add_all(
                    [
                        ExamQuestion(
                            tenant_id=exam.tenant_id,
                            exam_id=exam.id,
                            question_id=link.question_id,
                            points=link.points,
                            order=link.order,
                        )
                        for link in links
                    ]
                )
                await self.db.flush()
        except IntegrityError as e:
            logger.warning("Exam creation rolled back for %s: %s", exam.title, e.orig)
            raise DuplicateExamQuestionError(
                "A question can appear only once in an exam; nothing was created"
            ) from e

    async def _after_create(self, exam: Exam, count: int, actor: Any, mode: str) -> None:
        await self._invalidate(exam.tenant_id)
        logger.info(
            "Exam created (%s): %s with %d questions by %s",
            mode,
            exam.id,
            count,
            actor.id,
        )
        await publish_safely(
            self.events,
            EventTypes.Exam.CREATED,
            {"exam_id": exam.id, "created_by": actor.id, "question_count": count, "mode": mode},
            tenant_id=exam.tenant_id,
        )

    async def create_exam_atomic(self, request: ExamCreateRequest, actor: Any) -> Exam:
        """Create an exam from an explicit question list.

        Each entry's order defaults to its 1-based position in the list.
        If any link cannot be inserted (for example the same question
        twice) nothing is kept, not even the exam row.

        Args:
            request: Exam fields plus the question list.
            actor: Authenticated author.

        Returns:
            The created exam.

        Raises:
            AccessDeniedError: If the actor has no tenant.
            InvalidExamError: If the question list is empty.
            SubjectNotFoundError: If the subject is not in the tenant.
            ExamQuestionsNotFoundError: If a question is not in the tenant.
            DuplicateExamQuestionError: If a link insert failed.
        """
        tenant_id = actor_tenant(actor)
        entries = request.questions or []
        if not entries:
            raise InvalidExamError("At least one question is required")

        await self._ensure_subject(request.subject_id, tenant_id)
        await self._ensure_questions([entry.question_id for entry in entries], tenant_id)

        links = [
            _Link(entry.question_id, entry.points, entry.order or index + 1)
            for index, entry in enumerate(entries)
        ]
        exam = self._new_exam(request, tenant_id, actor)
        await self._write_exam(exam, links)
        await self._after_create(exam, len(links), actor, "manual")
        return exam

    async def generate_auto_exam(self, request: ExamCreateRequest, actor: Any) -> Exam:
        """Create an exam by stratified random sampling of the bank.

        All buckets are sampled and the total verified before anything
        is written; points are split evenly (rounded down).

        Raises:
            AccessDeniedError: If the actor has no tenant.
            InvalidExamError: If no sampling options were given.
            SubjectNotFoundError: If the subject is not in the tenant.
            InsufficientQuestionsError: If a bucket is too small.
            InvalidCompositionError: If counts do not match total_questions, or
                total_points is too small to give each question one point.
            DuplicateExamQuestionError: If a link insert failed.
        """
        tenant_id = actor_tenant(actor)
        options = request.auto_generate
        if options is None:
            raise InvalidExamError("Automatic generation needs a difficulty distribution")

        await self._ensure_subject(request.subject_id, tenant_id)

        planned = await plan_auto_exam(
            self.db,
            tenant_id=tenant_id,
            subject_id=request.subject_id,
            difficulty_distribution=options.difficulty_distribution,
            total_questions=options.total_questions,
            total_points=request.total_points,
        )

        exam = self._new_exam(request, tenant_id, actor)
        await self._write_exam(
            exam, [_Link(item.question_id, item.points, item.order) for item in planned]
        )
        await self._after_create(exam, len(planned), actor, "auto")
        return exam

    async def create_exam(self, request: ExamCreateRequest, actor: Any) -> Exam:
        """Create an exam through whichever path the request selects."""
        if request.is_auto:
            return await self.generate_auto_exam(request, actor)
        return await self.create_exam_atomic(request, actor)

    # ========== Question links ==========

    async def link_questions_best_effort(
        self,
        exam_id: str,
        entries: Sequence[ExamQuestionEntry],
        actor: Any,
    ) -> LinkResult:
        """Append questions to an exam, skipping ones already present.

        Every link is inserted in its own savepoint; a duplicate only
        undoes that one insert. Entries without an order are placed
        after the exam's current last question.

        Returns:
            How many links were requested and how many were added.

        Raises:
            ExamNotFoundError: If the exam does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            InvalidExamError: If entries is empty.
            ExamQuestionsNotFoundError: If a question is not in the tenant.
        """
        if not entries:
            raise InvalidExamError("At least one question is required")

        exam = await self._get_exam(exam_id)
        ensure_mutation(ResourceType.EXAM, exam, actor)
        await self._ensure_questions([entry.question_id for entry in entries], exam.tenant_id)

        result = await self.db.execute(
            select(func.coalesce(func.max(ExamQuestion.order), 0)).where(
                ExamQuestion.exam_id == exam_id
            )
        )
        last_order = int(result.scalar_one())

        added = 0
        async with atomic(self.db):
            for index, entry in enumerate(entries):
                link = ExamQuestion(
                    tenant_id=exam.tenant_id,
                    exam_id=exam_id,
                    question_id=entry.question_id,
                    points=entry.points,
                    order=entry.order or last_order + index + 1,
                )
                try:
                    async with savepoint(self.db):
                        self.db.add(link)
                        await self.db.flush()
                    added += 1
                except IntegrityError:
                    logger.debug(
                        "Question %s already in exam %s; skipped",
                        entry.question_id,
                        exam_id,
                    )

        outcome = LinkResult(requested=len(entries), added=added)
        await self._invalidate(exam.tenant_id)
        logger.info(
            "Linked %d/%d questions to exam %s",
            outcome.added,
            outcome.requested,
            exam_id,
        )
        if added:
            await publish_safely(
                self.events,
                EventTypes.Exam.UPDATED,
                {"exam_id": exam_id, "updated_by": actor.id, "questions_added": added},
                tenant_id=exam.tenant_id,
            )
        return outcome

    async def remove_question_from_exam(self, exam_id: str, question_id: str, actor: Any) -> None:
        """Remove one question from an exam.

        Raises:
            ExamNotFoundError: If the exam does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            ExamQuestionNotFoundError: If the question is not in the exam.
        """
        exam = await self._get_exam(exam_id)
        ensure_mutation(ResourceType.EXAM, exam, actor)

        async with atomic(self.db):
            result = await self.db.execute(
                delete(ExamQuestion).where(
                    and_(
                        ExamQuestion.exam_id == exam_id,
                        ExamQuestion.question_id == question_id,
                    )
                )
            )
            if result.rowcount == 0:
                raise ExamQuestionNotFoundError(
                    f"Question {question_id} is not part of exam {exam_id}"
                )

        await self._invalidate(exam.tenant_id)
        logger.info("Removed question %s from exam %s", question_id, exam_id)
        await publish_safely(
            self.events,
            EventTypes.Exam.UPDATED,
            {"exam_id": exam_id, "updated_by": actor.id, "question_removed": question_id},
            tenant_id=exam.tenant_id,
        )

    # ========== Update / delete ==========

    async def update_exam(self, exam_id: str, request: ExamUpdateRequest, actor: Any) -> Exam:
        """Update an exam's title, duration, total_points or is_randomized.

        Raises:
            ExamNotFoundError: If the exam does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            InvalidExamError: If duration or total_points is not positive.
            ExamConflictError: If the row changed concurrently.
        """
        exam = await self._get_exam(exam_id)
        ensure_mutation(ResourceType.EXAM, exam, actor)

        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True).items()
            if value is not None
        }
        for field_name in ("duration", "total_points"):
            if field_name in changes and changes[field_name] <= 0:
                raise InvalidExamError(f"{field_name} must be a positive number")

        try:
            async with atomic(self.db):
                for field_name, value in changes.items():
                    setattr(exam, field_name, value)
        except StaleDataError as e:
            raise ExamConflictError(f"Exam {exam_id} was modified concurrently") from e

        await self._invalidate(exam.tenant_id)
        logger.info("Exam updated: %s by %s", exam_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Exam.UPDATED,
            {"exam_id": exam_id, "updated_by": actor.id, "fields": sorted(changes)},
            tenant_id=exam.tenant_id,
        )
        return exam

    async def delete_exam(self, exam_id: str, actor: Any) -> None:
        """Delete an exam and its question links atomically.

        Links are removed first, then the exam; if the exam row is gone
        by then, the link deletion is rolled back too.

        Raises:
            ExamNotFoundError: If the exam does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
        """
        exam = await self._get_exam(exam_id)
        ensure_mutation(ResourceType.EXAM, exam, actor)

        async with atomic(self.db):
            links = await self.db.execute(
                delete(ExamQuestion).where(ExamQuestion.exam_id == exam_id)
            )
            result = await self.db.execute(delete(Exam).where(Exam.id == exam_id))
            if result.rowcount == 0:
                raise ExamNotFoundError(f"Exam {exam_id} not found")

        await self._invalidate(exam.tenant_id)
        logger.info(
            "Exam deleted: %s (%d question links) by %s",
            exam_id,
            links.rowcount,
            actor.id,
        )
        await publish_safely(
            self.events,
            EventTypes.Exam.DELETED,
            {"exam_id": exam_id, "deleted_by": actor.id},
            tenant_id=exam.tenant_id,
        )

    # ========== Reads ==========

    async def _load_details(self, exam_id: str) -> dict[str, Any]:
        result = await self.db.execute(
            select(Exam)
            .where(Exam.id == exam_id)
            .options(selectinload(Exam.subject), selectinload(Exam.creator))
        )
        exam = result.scalar_one_or_none()
        if exam is None:
            raise ExamNotFoundError(f"Exam {exam_id} not found")

        links = await self.db.execute(
            select(ExamQuestion)
            .where(ExamQuestion.exam_id == exam_id)
            .options(selectinload(ExamQuestion.question))
            .order_by(ExamQuestion.order.asc())
        )

        header = row_to_dict(exam)
        header["subject"] = row_to_dict(exam.subject, SUBJECT_FIELDS) if exam.subject else None
        header["creator"] = row_to_dict(exam.creator, CREATOR_FIELDS) if exam.creator else None

        questions = []
        for link in links.scalars().all():
            item = row_to_dict(link.question, QUESTION_FIELDS)
            item["points"] = link.points
            item["order"] = link.order
            questions.append(item)

        return {"exam": header, "questions": questions}

    async def get_exam_details(self, exam_id: str, actor: Any) -> dict[str, Any]:
        """Exam with subject, creator and its questions in order.

        Raises:
            ExamNotFoundError: If the exam does not exist.
            AccessDeniedError: If the actor may not view it.
        """
        if self.cache is not None and actor.tenant_id:
            cached = await self.cache.get(actor.tenant_id, EXAMS_SCOPE, exam_id)
            if cached is not None:
                ensure_access(ResourceType.EXAM, cached["exam"], actor)
                return cached

        details = await self._load_details(exam_id)
        ensure_access(ResourceType.EXAM, details["exam"], actor)

        tenant_id = details["exam"]["tenant_id"]
        if self.cache is not None and actor.tenant_id == tenant_id:
            await self.cache.set(tenant_id, EXAMS_SCOPE, exam_id, details)
        return details

    async def get_exam_questions(self, exam_id: str) -> list[dict[str, Any]]:
        """Questions of an exam in order, without access checks.

        Used by callers that have already authorized access to a
        resource embedding the exam (an assignment).
        """
        details = await self._load_details(exam_id)
        return details["questions"]

    async def list_exams(self, params: dict[str, Any], actor: Any) -> dict[str, Any]:
        """List exams: admins see the tenant's exams, others only their own.

        Raises:
            InvalidQueryError: If a filter is malformed.
        """
        pre_filter = None if is_admin(actor) else Exam.created_by == actor.id
        pipeline = QueryPipeline(
            self.db,
            Exam,
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
