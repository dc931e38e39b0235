# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission service.

This module provides the SubmissionService class for:
- Submitting (and resubmitting) a student's work for an assignment
- Grading a submission
- Listing submissions of an assignment and a student's own submissions

A student has at most one submission per assignment. Submitting again
before grading replaces the content but keeps the original submitted_at.
Once graded, the submission is locked against further student edits;
teachers may still regrade it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import and_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config.settings import PaginationSettings
from src.domains.access_control import AccessDeniedError, can_grade
from src.domains.assignment.service import AssignmentService
from src.domains.class_.service import ClassService
from src.infrastructure.database.models import Assignment, Submission, new_id
from src.infrastructure.database.query import Populate, QueryPipeline, TenantScope, row_to_dict
from src.infrastructure.database.transaction import atomic
from src.infrastructure.events import EventBus, EventTypes, publish_safely
from src.models.common import ClassRole
from src.models.submission import GradeRequest, SubmitRequest
from src.utils.datetime import is_expired, utc_now

logger = logging.getLogger(__name__)

STUDENT_FIELDS = ("full_name", "email")
ASSIGNMENT_FIELDS = ("title", "due_date", "class_id")
SUBMISSIONS_DEFAULT_SORT = "-submitted_at"
ASSIGNMENT_SUBMISSIONS_LIMIT = 50
MY_SUBMISSIONS_LIMIT = 20


class SubmissionServiceError(Exception):
    """Base exception for submission service errors."""

    pass


class SubmissionNotFoundError(SubmissionServiceError):
    """Raised when a submission is not found."""

    pass


class DeadlinePassedError(SubmissionServiceError):
    """Raised when submitting after the assignment's due date."""

    pass


class SubmissionLockedError(SubmissionServiceError):
    """Raised when a student resubmits work that has already been graded."""

    pass


class InvalidScoreError(SubmissionServiceError):
    """Raised when a score is negative."""

    pass


class SubmissionService:
    """Service for submissions and grading.

    Attributes:
        db: Async database session.
        assignments: Assignment lookups.
        classes: Class membership lookups.
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
        self.assignments = AssignmentService(db)
        self.classes = ClassService(db)

    def _pipeline(self, actor: Any) -> QueryPipeline:
        return QueryPipeline(
            self.db,
            Submission,
            TenantScope.for_actor(actor),
            default_limit=self.pagination.default_limit,
            max_limit=self.pagination.max_limit,
        )

    async def _assignment_in_tenant(self, assignment_id: str, actor: Any) -> Assignment:
        assignment = await self.assignments.get_assignment(assignment_id)
        if assignment.tenant_id != actor.tenant_id:
            raise AccessDeniedError("This assignment belongs to another school")
        return assignment

    async def submit(self, request: SubmitRequest, actor: Any) -> Submission:
        """Create or replace the actor's submission for an assignment.

        Args:
            request: Assignment id plus answers and/or a file reference.
            actor: Authenticated student.

        Returns:
            The stored submission.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            DeadlinePassedError: If the due date has passed.
            AccessDeniedError: If the actor is not a student of the class.
            SubmissionLockedError: If the submission was already graded.
        """
        assignment = await self._assignment_in_tenant(request.assignment_id, actor)

        if is_expired(assignment.due_date):
            raise DeadlinePassedError("The deadline for this assignment has passed")

        role = await self.classes.get_role(assignment.class_id, actor.id)
        if role != ClassRole.STUDENT.value:
            raise AccessDeniedError("Only students of this class can submit")

        now = utc_now()
        stmt = pg_insert(Submission).values(
            id=new_id(),
            tenant_id=assignment.tenant_id,
            assignment_id=assignment.id,
            student_id=actor.id,
            answers=request.answers,
            file_url=request.file_url,
            submitted_at=now,
            created_at=now,
            updated_at=now,
            version_id=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Submission.assignment_id, Submission.student_id],
            set_={
                "answers": stmt.excluded.answers,
                "file_url": stmt.excluded.file_url,
                "updated_at": now,
                "version_id": Submission.version_id + 1,
            },
            where=Submission.graded_at.is_(None),
        ).returning(Submission)

        async with atomic(self.db):
            result = await self.db.execute(
                stmt, execution_options={"populate_existing": True}
            )
            submission = result.scalar_one_or_none()
            if submission is None:
                raise SubmissionLockedError(
                    "This submission has been graded and can no longer be changed"
                )

        logger.info(
            "Submission stored for assignment %s by student %s",
            assignment.id,
            actor.id,
        )
        await publish_safely(
            self.events,
            EventTypes.Submission.SUBMITTED,
            {
                "submission_id": submission.id,
                "assignment_id": assignment.id,
                "student_id": actor.id,
                "assignment_creator_id": assignment.created_by,
            },
            tenant_id=assignment.tenant_id,
        )
        return submission

    async def grade(self, submission_id: str, request: GradeRequest, actor: Any) -> Submission:
        """Record a score and feedback for a submission.

        Score, feedback, graded_at and graded_by are written in one update.

        Raises:
            SubmissionNotFoundError: If the submission does not exist.
            AccessDeniedError: If the actor is not the assignment's creator,
                a teacher of the class or an admin.
            InvalidScoreError: If the score is negative.
        """
        if request.score < 0:
            raise InvalidScoreError("Score must be a non-negative number")

        result = await self.db.execute(
            select(Submission)
            .where(Submission.id == submission_id)
            .options(selectinload(Submission.assignment))
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found")

        assignment = submission.assignment
        class_role = await self.classes.get_role(assignment.class_id, actor.id)
        if not can_grade(assignment, actor, class_role):
            raise AccessDeniedError("You are not allowed to grade this submission")

        async with atomic(self.db):
            submission.score = request.score
            submission.feedback = request.feedback
            submission.graded_at = utc_now()
            submission.graded_by = actor.id

        logger.info("Submission %s graded by %s", submission_id, actor.id)
        await publish_safely(
            self.events,
            EventTypes.Submission.GRADED,
            {
                "submission_id": submission_id,
                "assignment_id": assignment.id,
                "student_id": submission.student_id,
                "score": request.score,
            },
            tenant_id=submission.tenant_id,
        )
        return submission

    async def list_for_assignment(
        self,
        assignment_id: str,
        params: dict[str, Any],
        actor: Any,
    ) -> dict[str, Any]:
        """Submissions of one assignment, newest first.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            AccessDeniedError: If the actor may not grade the assignment.
            InvalidQueryError: If a filter is malformed.
        """
        assignment = await self.assignments.get_assignment(assignment_id)
        class_role = await self.classes.get_role(assignment.class_id, actor.id)
        if not can_grade(assignment, actor, class_role):
            raise AccessDeniedError("You are not allowed to view these submissions")

        return await self._pipeline(actor).execute(
            params,
            pre_filter=Submission.assignment_id == assignment_id,
            populate=[Populate("student", STUDENT_FIELDS)],
            default_sort=SUBMISSIONS_DEFAULT_SORT,
            default_limit=ASSIGNMENT_SUBMISSIONS_LIMIT,
        )

    async def get_my_submission(self, assignment_id: str, actor: Any) -> dict[str, Any]:
        """The actor's own submission for one assignment.

        Raises:
            SubmissionNotFoundError: If the actor has not submitted.
        """
        result = await self.db.execute(
            select(Submission)
            .where(
                and_(
                    Submission.assignment_id == assignment_id,
                    Submission.student_id == actor.id,
                )
            )
            .options(selectinload(Submission.assignment))
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            raise SubmissionNotFoundError("You have not submitted this assignment")

        item = row_to_dict(submission)
        item["assignment"] = row_to_dict(submission.assignment, ASSIGNMENT_FIELDS)
        return item

    async def list_my_submissions(self, params: dict[str, Any], actor: Any) -> dict[str, Any]:
        """Every submission of the actor, newest first.

        Raises:
            InvalidQueryError: If a filter is malformed.
        """
        return await self._pipeline(actor).execute(
            params,
            pre_filter=Submission.student_id == actor.id,
            populate=[Populate("assignment", ASSIGNMENT_FIELDS)],
            default_sort=SUBMISSIONS_DEFAULT_SORT,
            default_limit=MY_SUBMISSIONS_LIMIT,
        )
