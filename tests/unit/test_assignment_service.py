# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for AssignmentService."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.access_control import AccessDeniedError
from src.domains.assignment import (
    AssignmentExamNotFoundError,
    AssignmentNotFoundError,
    AssignmentService,
    InvalidDueDateError,
)
from src.domains.class_ import ClassNotFoundError
from src.infrastructure.database.models import (
    Assignment,
    Class,
    Exam,
    ExamQuestion,
    Question,
)
from src.infrastructure.events import EventTypes
from src.models.assignment import AssignmentCreateRequest, AssignmentUpdateRequest
from src.utils.datetime import utc_now

TENANT = "550e8400-e29b-41d4-a716-446655440000"
CLASS_ID = "8b3e4c9a-5d7f-4e3a-9c77-2f4b0d9e3c01"
UNKNOWN_EXAM_ID = "9c4f5d0b-6e8a-4f4b-8d88-3a5c1e0f4dff"


def _class() -> Class:
    return Class(id=CLASS_ID, tenant_id=TENANT, name="7A", grade_level="7")


def _assignment(**overrides) -> Assignment:
    values = {
        "id": "assignment-1",
        "tenant_id": TENANT,
        "class_id": CLASS_ID,
        "exam_id": None,
        "title": "Homework 1",
        "due_date": utc_now() + timedelta(days=3),
        "created_by": "teacher-1",
        "version_id": 1,
    }
    values.update(overrides)
    return Assignment(**values)


def _create_request(**overrides) -> AssignmentCreateRequest:
    values = {
        "class_id": CLASS_ID,
        "title": "Homework 1",
        "due_date": utc_now() + timedelta(days=7),
    }
    values.update(overrides)
    return AssignmentCreateRequest(**values)


@pytest.fixture
def events():
    bus = MagicMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def service(mock_db, events):
    return AssignmentService(mock_db, events=events)


class TestCreateAssignment:
    """Assignment creation."""

    @pytest.mark.asyncio
    async def test_creates_and_notifies_class_students(
        self, service, mock_db, make_result, teacher, events
    ):
        mock_db.execute.side_effect = [
            make_result(scalar=_class()),
            make_result(scalars=["student-1", "student-2"]),
        ]

        assignment = await service.create_assignment(_create_request(), teacher)

        assert assignment.tenant_id == TENANT
        assert assignment.created_by == "teacher-1"
        mock_db.commit.assert_awaited_once()
        event_type, payload = events.publish.await_args.args
        assert event_type == EventTypes.Assignment.CREATED
        assert payload["student_ids"] == ["student-1", "student-2"]

    @pytest.mark.asyncio
    async def test_past_due_date_rejected(self, service, mock_db, teacher):
        with pytest.raises(InvalidDueDateError):
            await service.create_assignment(
                _create_request(due_date=utc_now() - timedelta(minutes=1)), teacher
            )

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_class_outside_tenant(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(ClassNotFoundError):
            await service.create_assignment(_create_request(), teacher)

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_exam_must_be_in_tenant(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [
            make_result(scalar=_class()),
            make_result(scalar=None),
        ]

        with pytest.raises(AssignmentExamNotFoundError):
            await service.create_assignment(_create_request(exam_id=UNKNOWN_EXAM_ID), teacher)

        mock_db.add.assert_not_called()


class TestListAssignments:
    """Class assignment listing."""

    @pytest.mark.asyncio
    async def test_member_sees_all_class_assignments(
        self, service, mock_db, make_result, student
    ):
        mock_db.execute.side_effect = [
            make_result(scalar=_class()),
            make_result(scalar="student"),
            make_result(scalar=0),
            make_result(scalars=[]),
        ]

        await service.list_assignments_by_class(CLASS_ID, {}, student)

        count_sql = str(mock_db.execute.await_args_list[2].args[0])
        data_sql = str(mock_db.execute.await_args_list[3].args[0])
        assert "assignments.class_id" in count_sql
        assert "assignments.created_by" not in count_sql
        assert "ORDER BY assignments.due_date DESC" in data_sql

    @pytest.mark.asyncio
    async def test_non_member_sees_only_own(self, service, mock_db, make_result, other_teacher):
        mock_db.execute.side_effect = [
            make_result(scalar=_class()),
            make_result(scalar=None),
            make_result(scalar=0),
            make_result(scalars=[]),
        ]

        await service.list_assignments_by_class(CLASS_ID, {}, other_teacher)

        count_sql = str(mock_db.execute.await_args_list[2].args[0])
        assert "assignments.created_by" in count_sql


class TestAssignmentDetails:
    """Detail reads with embedded exam questions."""

    def _queue(self, mock_db, make_result, class_role):
        assignment = _assignment(exam_id="exam-1")
        assignment.creator = None
        assignment.class_ = _class()
        assignment.exam = Exam(
            id="exam-1",
            tenant_id=TENANT,
            title="Quiz",
            subject_id="subject-1",
            duration=20,
            total_points=10,
            is_randomized=False,
            created_by="teacher-1",
        )
        exam = assignment.exam
        exam.subject = None
        exam.creator = None
        link = ExamQuestion(
            tenant_id=TENANT, exam_id="exam-1", question_id="q-1", points=10, order=1
        )
        link.question = Question(
            id="q-1",
            tenant_id=TENANT,
            subject_id="subject-1",
            topic="Fractions",
            difficulty="easy",
            type="multiple_choice",
            content="1/2 + 1/2?",
            answers=[{"text": "1", "is_correct": True}, {"text": "2", "is_correct": False}],
            tags=[],
            created_by="teacher-1",
        )
        mock_db.execute.side_effect = [
            make_result(scalar=assignment),
            make_result(scalar=class_role),
            make_result(scalar=exam),
            make_result(scalars=[link]),
        ]

    @pytest.mark.asyncio
    async def test_student_member_gets_questions_without_key(
        self, service, mock_db, make_result, student
    ):
        self._queue(mock_db, make_result, "student")

        detail = await service.get_assignment_details("assignment-1", student)

        assert detail["class"] == {"id": CLASS_ID, "name": "7A", "grade_level": "7"}
        assert detail["exam"]["title"] == "Quiz"
        assert detail["questions"][0]["answers"] == [{"text": "1"}, {"text": "2"}]

    @pytest.mark.asyncio
    async def test_teacher_sees_correct_answers(self, service, mock_db, make_result, teacher):
        self._queue(mock_db, make_result, None)

        detail = await service.get_assignment_details("assignment-1", teacher)

        assert detail["questions"][0]["answers"][0]["is_correct"] is True

    @pytest.mark.asyncio
    async def test_non_member_student_denied(self, service, mock_db, make_result, student):
        self._queue(mock_db, make_result, None)

        with pytest.raises(AccessDeniedError):
            await service.get_assignment_details("assignment-1", student)

    @pytest.mark.asyncio
    async def test_missing_assignment(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(AssignmentNotFoundError):
            await service.get_assignment_details("assignment-404", teacher)


class TestUpdateAndDelete:
    """Mutations are limited to the creator and admins."""

    @pytest.mark.asyncio
    async def test_creator_moves_due_date(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=_assignment())]
        new_due = utc_now() + timedelta(days=10)

        assignment = await service.update_assignment(
            "assignment-1", AssignmentUpdateRequest(due_date=new_due), teacher
        )

        assert assignment.due_date == new_due
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_due_date_in_past_rejected(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=_assignment())]

        with pytest.raises(InvalidDueDateError):
            await service.update_assignment(
                "assignment-1",
                AssignmentUpdateRequest(due_date=utc_now() - timedelta(days=1)),
                teacher,
            )

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_teacher_cannot_update(
        self, service, mock_db, make_result, other_teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_assignment())]

        with pytest.raises(AccessDeniedError):
            await service.update_assignment(
                "assignment-1", AssignmentUpdateRequest(title="x"), other_teacher
            )

    @pytest.mark.asyncio
    async def test_admin_deletes(self, service, mock_db, make_result, school_admin, events):
        assignment = _assignment()
        mock_db.execute.side_effect = [make_result(scalar=assignment)]

        await service.delete_assignment("assignment-1", school_admin)

        mock_db.delete.assert_awaited_once_with(assignment)
        assert events.publish.await_args.args[0] == EventTypes.Assignment.DELETED

    @pytest.mark.asyncio
    async def test_delete_missing(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(AssignmentNotFoundError):
            await service.delete_assignment("assignment-404", teacher)
