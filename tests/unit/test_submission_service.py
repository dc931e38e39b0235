# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for SubmissionService."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from src.domains.access_control import AccessDeniedError
from src.domains.assignment import AssignmentNotFoundError
from src.domains.submission import (
    DeadlinePassedError,
    InvalidScoreError,
    SubmissionLockedError,
    SubmissionNotFoundError,
    SubmissionService,
)
from src.infrastructure.database.models import Assignment, Submission
from src.infrastructure.events import EventTypes
from src.models.submission import GradeRequest, SubmitRequest
from src.utils.datetime import utc_now

TENANT = "550e8400-e29b-41d4-a716-446655440000"
OTHER_TENANT = "550e8400-e29b-41d4-a716-4466554400ff"
ASSIGNMENT_ID = "a1b2c3d4-7f9b-4a5c-9e99-4b6d2f1a5e01"
UNKNOWN_ASSIGNMENT_ID = "a1b2c3d4-7f9b-4a5c-9e99-4b6d2f1a5eff"


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def _assignment(**overrides) -> Assignment:
    values = {
        "id": ASSIGNMENT_ID,
        "tenant_id": TENANT,
        "class_id": "class-1",
        "title": "Homework 1",
        "due_date": utc_now() + timedelta(days=1),
        "created_by": "teacher-1",
        "version_id": 1,
    }
    values.update(overrides)
    return Assignment(**values)


def _submission(**overrides) -> Submission:
    values = {
        "id": "submission-1",
        "tenant_id": TENANT,
        "assignment_id": ASSIGNMENT_ID,
        "student_id": "student-1",
        "answers": ["B"],
        "submitted_at": utc_now() - timedelta(hours=1),
        "version_id": 1,
    }
    values.update(overrides)
    submission = Submission(**values)
    submission.assignment = _assignment()
    return submission


@pytest.fixture
def events():
    bus = MagicMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def service(mock_db, events):
    return SubmissionService(mock_db, events=events)


class TestSubmit:
    """Submitting and resubmitting."""

    @pytest.mark.asyncio
    async def test_submission_stored_and_creator_notified(
        self, service, mock_db, make_result, student, events
    ):
        stored = _submission()
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar="student"),
            make_result(scalar=stored),
        ]

        submission = await service.submit(
            SubmitRequest(assignment_id=ASSIGNMENT_ID, answers=["B"]), student
        )

        assert submission is stored
        mock_db.commit.assert_awaited_once()
        event_type, payload = events.publish.await_args.args
        assert event_type == EventTypes.Submission.SUBMITTED
        assert payload["assignment_creator_id"] == "teacher-1"

    @pytest.mark.asyncio
    async def test_resubmission_keeps_original_submit_time(
        self, service, mock_db, make_result, student
    ):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar="student"),
            make_result(scalar=_submission()),
        ]

        await service.submit(SubmitRequest(assignment_id=ASSIGNMENT_ID, file_url="f.pdf"), student)

        sql = _sql(mock_db.execute.await_args_list[2].args[0])
        assert "ON CONFLICT (assignment_id, student_id) DO UPDATE SET" in sql
        set_clause = sql.split("DO UPDATE SET", 1)[1].split(" WHERE ", 1)[0]
        assert "answers = excluded.answers" in set_clause
        assert "file_url = excluded.file_url" in set_clause
        assert "submitted_at" not in set_clause
        assert "submissions.graded_at IS NULL" in sql

    @pytest.mark.asyncio
    async def test_graded_submission_is_locked(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar="student"),
            make_result(scalar=None),
        ]

        with pytest.raises(SubmissionLockedError):
            await service.submit(SubmitRequest(assignment_id=ASSIGNMENT_ID, answers=[]), student)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deadline_passed(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment(due_date=utc_now() - timedelta(seconds=5))),
        ]

        with pytest.raises(DeadlinePassedError):
            await service.submit(SubmitRequest(assignment_id=ASSIGNMENT_ID, answers=[]), student)

        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_non_member_cannot_submit(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar=None),
        ]

        with pytest.raises(AccessDeniedError):
            await service.submit(SubmitRequest(assignment_id=ASSIGNMENT_ID, answers=[]), student)

    @pytest.mark.asyncio
    async def test_foreign_assignment_denied(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [make_result(scalar=_assignment(tenant_id=OTHER_TENANT))]

        with pytest.raises(AccessDeniedError):
            await service.submit(SubmitRequest(assignment_id=ASSIGNMENT_ID, answers=[]), student)

    @pytest.mark.asyncio
    async def test_unknown_assignment(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(AssignmentNotFoundError):
            await service.submit(SubmitRequest(assignment_id=UNKNOWN_ASSIGNMENT_ID, answers=[]), student)

    def test_empty_submission_rejected_by_schema(self):
        with pytest.raises(ValueError):
            SubmitRequest(assignment_id=ASSIGNMENT_ID)


class TestGrade:
    """Grading rights and the graded fields."""

    @pytest.mark.asyncio
    async def test_creator_grades(self, service, mock_db, make_result, teacher, events):
        mock_db.execute.side_effect = [make_result(scalar=_submission()), make_result(scalar=None)]

        submission = await service.grade(
            "submission-1", GradeRequest(score=8.5, feedback="Good"), teacher
        )

        assert submission.score == 8.5
        assert submission.feedback == "Good"
        assert submission.graded_by == "teacher-1"
        assert submission.graded_at is not None
        mock_db.commit.assert_awaited_once()
        payload = events.publish.await_args.args[1]
        assert payload["student_id"] == "student-1"

    @pytest.mark.asyncio
    async def test_class_teacher_grades(self, service, mock_db, make_result, other_teacher):
        mock_db.execute.side_effect = [
            make_result(scalar=_submission()),
            make_result(scalar="teacher"),
        ]

        submission = await service.grade("submission-1", GradeRequest(score=5), other_teacher)

        assert submission.graded_by == "teacher-2"

    @pytest.mark.asyncio
    async def test_unrelated_teacher_cannot_grade(
        self, service, mock_db, make_result, other_teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_submission()), make_result(scalar=None)]

        with pytest.raises(AccessDeniedError):
            await service.grade("submission-1", GradeRequest(score=5), other_teacher)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_score_rejected(self, service, mock_db, teacher):
        with pytest.raises(InvalidScoreError):
            await service.grade("submission-1", GradeRequest.model_construct(score=-1), teacher)

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_submission(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(SubmissionNotFoundError):
            await service.grade("submission-404", GradeRequest(score=1), teacher)


class TestSubmissionReads:
    """Listing and own-submission reads."""

    @pytest.mark.asyncio
    async def test_grader_lists_assignment_submissions(
        self, service, mock_db, make_result, teacher
    ):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar=None),
            make_result(scalar=0),
            make_result(scalars=[]),
        ]

        page = await service.list_for_assignment(ASSIGNMENT_ID, {}, teacher)

        assert page["pagination"]["limit"] == 50
        data_sql = str(mock_db.execute.await_args_list[3].args[0])
        assert "ORDER BY submissions.submitted_at DESC" in data_sql

    @pytest.mark.asyncio
    async def test_student_cannot_list_assignment_submissions(
        self, service, mock_db, make_result, student
    ):
        mock_db.execute.side_effect = [
            make_result(scalar=_assignment()),
            make_result(scalar="student"),
        ]

        with pytest.raises(AccessDeniedError):
            await service.list_for_assignment(ASSIGNMENT_ID, {}, student)

    @pytest.mark.asyncio
    async def test_my_submission(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [make_result(scalar=_submission())]

        item = await service.get_my_submission(ASSIGNMENT_ID, student)

        assert item["student_id"] == "student-1"
        assert item["assignment"]["title"] == "Homework 1"

    @pytest.mark.asyncio
    async def test_my_submission_missing(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(SubmissionNotFoundError):
            await service.get_my_submission(ASSIGNMENT_ID, student)

    @pytest.mark.asyncio
    async def test_my_submissions_default_limit(self, service, mock_db, make_result, student):
        mock_db.execute.side_effect = [make_result(scalar=0), make_result(scalars=[])]

        page = await service.list_my_submissions({}, student)

        assert page["pagination"]["limit"] == 20
        count_sql = str(mock_db.execute.await_args_list[0].args[0])
        assert "submissions.student_id" in count_sql
