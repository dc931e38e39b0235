# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment service for class coursework.

This module provides the AssignmentService class for:
- Creating assignments for a class, optionally backed by an exam
- Listing a class's assignments (newest due date first)
- Reading an assignment with its class, creator and exam questions
- Updating and deleting assignments (creator or admin only)

A due date must lie in the future when an assignment is created and
whenever it is changed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config.settings import PaginationSettings
from src.domains.access_control import (
    ResourceType,
    actor_tenant,
    ensure_access,
    ensure_mutation,
    is_admin,
)
from src.domains.class_.service import ClassService
from src.domains.exam.service import ExamService
from src.infrastructure.database.models import Assignment, Exam
from src.infrastructure.database.query import Populate, QueryPipeline, TenantScope, row_to_dict
from src.infrastructure.database.transaction import atomic
from src.infrastructure.events import EventBus, EventTypes, publish_safely
from src.models.assignment import AssignmentCreateRequest, AssignmentUpdateRequest
from src.models.common import UserRole
from src.utils.datetime import ensure_utc, is_in_future

logger = logging.getLogger(__name__)

CREATOR_FIELDS = ("full_name", "email")
CLASS_FIELDS = ("name", "grade_level")
EXAM_FIELDS = ("title", "subject_id", "duration", "total_points", "is_randomized")
ASSIGNMENTS_DEFAULT_SORT = "-due_date"


class AssignmentServiceError(Exception):
    """Base exception for assignment service errors."""

    pass


class AssignmentNotFoundError(AssignmentServiceError):
    """Raised when an assignment is not found."""

    pass


class InvalidDueDateError(AssignmentServiceError):
    """Raised when a due date is not in the future."""

    pass


class AssignmentExamNotFoundError(AssignmentServiceError):
    """Raised when the linked exam does not exist in the tenant."""

    pass


def _check_due_date(due_date: datetime) -> datetime:
    due = ensure_utc(due_date)
    if not is_in_future(due):
        raise InvalidDueDateError("Due date must be in the future")
    return due


def _hide_correct_answers(questions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    hidden = []
    for question in questions:
        item = dict(question)
        item["answers"] = [
            {key: value for key, value in answer.items() if key != "is_correct"}
            for answer in (question.get("answers") or [])
        ]
        hidden.append(item)
    return hidden


class AssignmentService:
    """Service for managing assignments.

    Attributes:
        db: Async database session.
        classes: Class lookups and membership checks.
        events: Event bus for change notifications, optional.
        pagination: Paging defaults for list endpoints.
    """

    def __init__(
        self,
        db: AsyncSession,
        events: Optional[EventBus] = None,
        pagination: Optional[PaginationSettings] = None,
    ) -> None:
        self.db = db
        self.events = events
        self.pagination = pagination or PaginationSettings()
        self.classes = ClassService(db)

    async def get_assignment(self, assignment_id: str) -> Assignment:
        """Get an assignment by id.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
        """
        result = await self.db.execute(select(Assignment).where(Assignment.id == assignment_id))
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")
        return assignment

    async def _ensure_exam(self, exam_id: str, tenant_id: str) -> None:
        result = await self.db.execute(
            select(Exam.id).where(and_(Exam.id == exam_id, Exam.tenant_id == tenant_id))
        )
        if result.scalar_one_or_none() is None:
            raise AssignmentExamNotFoundError(f"Exam {exam_id} not found")

    async def create_assignment(self, request: AssignmentCreateRequest, actor: Any) -> Assignment:
        """Create an assignment for a class.

        Args:
            request: Assignment data.
            actor: Authenticated teacher or admin.

        Returns:
            The created assignment.

        Raises:
            AccessDeniedError: If the actor has no tenant.
            InvalidDueDateError: If the due date is not in the future.
            ClassNotFoundError: If the class is not in the tenant.
            AssignmentExamNotFoundError: If the exam is not in the tenant.
        """
        tenant_id = actor_tenant(actor)
        due_date = _check_due_date(request.due_date)

        await self.classes.get_class(request.class_id, TenantScope.for_tenant(tenant_id))
        if request.exam_id:
            await self._ensure_exam(request.exam_id, tenant_id)

        assignment = Assignment(
            tenant_id=tenant_id,
            class_id=request.class_id,
            exam_id=request.exam_id,
            title=request.title,
            description=request.description,
            due_date=due_date,
            created_by=actor.id,
        )
        async with atomic(self.db):
            self.db.add(assignment)

        logger.info(
            "Assignment created: %s for class %s by %s",
            assignment.id,
            request.class_id,
            actor.id,
        )

        student_ids = await self.classes.list_student_ids(request.class_id)
        await publish_safely(
            self.events,
            EventTypes.Assignment.CREATED,
            {
                "assignment_id": assignment.id,
                "class_id": request.class_id,
                "title": assignment.title,
                "due_date": due_date.isoformat(),
                "created_by": actor.id,
                "student_ids": student_ids,
            },
            tenant_id=tenant_id,
        )
        return assignment

    async def list_assignments_by_class(
        self,
        class_id: str,
        params: dict[str, Any],
        actor: Any,
    ) -> dict[str, Any]:
        """List a class's assignments, newest due date first.

        Admins and class members see every assignment of the class;
        anyone else only sees the ones they created.

        Raises:
            ClassNotFoundError: If the class is not visible to the actor.
            InvalidQueryError: If a filter is malformed.
        """
        scope = TenantScope.for_actor(actor)
        await self.classes.get_class(class_id, scope)

        pre_filter = Assignment.class_id == class_id
        if not is_admin(actor) and await self.classes.get_role(class_id, actor.id) is None:
            pre_filter = and_(pre_filter, Assignment.created_by == actor.id)

        pipeline = QueryPipeline(
            self.db,
            Assignment,
            scope,
            default_limit=self.pagination.default_limit,
            max_limit=self.pagination.max_limit,
        )
        return await pipeline.execute(
            params,
            pre_filter=pre_filter,
            populate=[
                Populate("creator", CREATOR_FIELDS),
                Populate("exam", EXAM_FIELDS),
            ],
            default_sort=ASSIGNMENTS_DEFAULT_SORT,
        )

    async def get_assignment_details(self, assignment_id: str, actor: Any) -> dict[str, Any]:
        """Assignment with creator, class and exam expanded.

        When the assignment is backed by an exam its questions are
        included in order; students do not see which answer is correct.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            AccessDeniedError: If the actor may not view it.
        """
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.id == assignment_id)
            .options(
                selectinload(Assignment.creator),
                selectinload(Assignment.class_),
                selectinload(Assignment.exam),
            )
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")

        class_role = await self.classes.get_role(assignment.class_id, actor.id)
        ensure_access(ResourceType.ASSIGNMENT, assignment, actor, class_role)

        detail = row_to_dict(assignment)
        detail["creator"] = (
            row_to_dict(assignment.creator, CREATOR_FIELDS) if assignment.creator else None
        )
        detail["class"] = (
            row_to_dict(assignment.class_, CLASS_FIELDS) if assignment.class_ else None
        )
        detail["exam"] = row_to_dict(assignment.exam, EXAM_FIELDS) if assignment.exam else None

        if assignment.exam_id:
            questions = await ExamService(self.db).get_exam_questions(assignment.exam_id)
            if actor.role == UserRole.STUDENT.value:
                questions = _hide_correct_answers(questions)
            detail["questions"] = questions

        return detail

    async def update_assignment(
        self,
        assignment_id: str,
        request: AssignmentUpdateRequest,
        actor: Any,
    ) -> Assignment:
        """Update an assignment.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
            InvalidDueDateError: If a changed due date is not in the future.
            AssignmentExamNotFoundError: If a new exam is not in the tenant.
        """
        assignment = await self.get_assignment(assignment_id)
        ensure_mutation(ResourceType.ASSIGNMENT, assignment, actor)

        changes = request.model_dump(exclude_unset=True)
        if changes.get("due_date") is not None:
            changes["due_date"] = _check_due_date(changes["due_date"])
        elif "due_date" in changes:
            del changes["due_date"]
        if changes.get("title") is None:
            changes.pop("title", None)
        if changes.get("exam_id"):
            await self._ensure_exam(changes["exam_id"], assignment.tenant_id)

        async with atomic(self.db):
            for field_name, value in changes.items():
                setattr(assignment, field_name, value)

        logger.info("Assignment updated: %s by %s", assignment_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Assignment.UPDATED,
            {"assignment_id": assignment_id, "updated_by": actor.id, "fields": sorted(changes)},
            tenant_id=assignment.tenant_id,
        )
        return assignment

    async def delete_assignment(self, assignment_id: str, actor: Any) -> None:
        """Delete an assignment and, through the foreign key, its submissions.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            AccessDeniedError: If the actor is neither creator nor admin.
        """
        assignment = await self.get_assignment(assignment_id)
        ensure_mutation(ResourceType.ASSIGNMENT, assignment, actor)

        async with atomic(self.db):
            await self.db.delete(assignment)

        logger.info("Assignment deleted: %s by %s", assignment_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Assignment.DELETED,
            {"assignment_id": assignment_id, "class_id": assignment.class_id},
            tenant_id=assignment.tenant_id,
        )
