# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the question bank service."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.orm.exc import StaleDataError

from src.domains.access_control import AccessDeniedError
from src.domains.question import (
    InvalidAnswersError,
    QuestionConflictError,
    QuestionInUseError,
    QuestionNotFoundError,
    QuestionService,
    SubjectNotFoundError,
    validate_answers,
)
from src.infrastructure.cache import EXAMS_SCOPE, QUESTIONS_SCOPE
from src.infrastructure.database.models import Question
from src.models.question import AnswerOption, QuestionCreateRequest, QuestionUpdateRequest

TENANT = "550e8400-e29b-41d4-a716-446655440000"
SUBJECT_ID = "6f1c2a9e-3b7d-4c1e-9a55-0d2f8b7c1a01"


def _question(**overrides) -> Question:
    values = {
        "id": "q-1",
        "tenant_id": TENANT,
        "subject_id": SUBJECT_ID,
        "topic": "Fractions",
        "difficulty": "easy",
        "type": "multiple_choice",
        "content": "What is 1/2 + 1/2?",
        "answers": [
            {"text": "1", "is_correct": True},
            {"text": "2", "is_correct": False},
        ],
        "tags": ["fractions"],
        "is_public": False,
        "created_by": "teacher-1",
        "version_id": 1,
    }
    values.update(overrides)
    return Question(**values)


def _create_request(**overrides) -> QuestionCreateRequest:
    values = {
        "subject_id": SUBJECT_ID,
        "topic": "Fractions",
        "difficulty": "easy",
        "type": "multiple_choice",
        "content": "What is 1/2 + 1/2?",
        "answers": [{"text": "1", "is_correct": True}, {"text": "2"}],
        "tags": ["fractions"],
    }
    values.update(overrides)
    return QuestionCreateRequest(**values)


@pytest.fixture
def cache():
    accelerator = MagicMock()
    accelerator.get = AsyncMock(return_value=None)
    accelerator.set = AsyncMock()
    accelerator.invalidate = AsyncMock()
    return accelerator


@pytest.fixture
def service(mock_db, cache):
    return QuestionService(mock_db, cache=cache)


class TestValidateAnswers:
    """The multiple-choice answer rule."""

    def test_essay_has_no_constraint(self):
        validate_answers("essay", [])

    def test_exactly_one_correct_passes(self):
        validate_answers(
            "multiple_choice",
            [AnswerOption(text="a", is_correct=True), AnswerOption(text="b")],
        )

    def test_dict_answers_are_accepted(self):
        validate_answers(
            "multiple_choice",
            [{"text": "a", "is_correct": True}, {"text": "b", "is_correct": False}],
        )

    def test_single_answer_rejected(self):
        with pytest.raises(InvalidAnswersError, match="at least 2"):
            validate_answers("multiple_choice", [AnswerOption(text="a", is_correct=True)])

    @pytest.mark.parametrize("flags", [(False, False), (True, True)])
    def test_correct_count_must_be_one(self, flags):
        answers = [AnswerOption(text=str(i), is_correct=flag) for i, flag in enumerate(flags)]

        with pytest.raises(InvalidAnswersError, match="exactly 1"):
            validate_answers("multiple_choice", answers)


class TestCreateQuestion:
    """Creating bank entries."""

    @pytest.mark.asyncio
    async def test_creates_in_actor_tenant(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=SUBJECT_ID)]

        question = await service.create_question(_create_request(), teacher)

        assert question.tenant_id == TENANT
        assert question.created_by == "teacher-1"
        assert question.answers == [
            {"text": "1", "is_correct": True},
            {"text": "2", "is_correct": False},
        ]
        mock_db.add.assert_called_once_with(question)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_answers_checked_before_database(self, service, mock_db, teacher):
        with pytest.raises(InvalidAnswersError):
            await service.create_question(
                _create_request(answers=[{"text": "a"}, {"text": "b"}]), teacher
            )

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_subject(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(SubjectNotFoundError):
            await service.create_question(_create_request(), teacher)

        mock_db.add.assert_not_called()


class TestGetQuestion:
    """Single reads honour the visibility rule."""

    @pytest.mark.asyncio
    async def test_private_question_hidden_from_colleague(
        self, service, mock_db, make_result, other_teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_question())]

        with pytest.raises(AccessDeniedError):
            await service.get_question("q-1", other_teacher)

    @pytest.mark.asyncio
    async def test_public_question_visible_and_cached(
        self, service, mock_db, make_result, other_teacher, cache
    ):
        question = _question(is_public=True)
        question.subject = None
        question.creator = None
        mock_db.execute.side_effect = [make_result(scalar=question)]

        detail = await service.get_question("q-1", other_teacher)

        assert detail["id"] == "q-1"
        assert detail["subject"] is None
        cache.set.assert_awaited_once_with(TENANT, QUESTIONS_SCOPE, "q-1", detail)

    @pytest.mark.asyncio
    async def test_missing_question(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(QuestionNotFoundError):
            await service.get_question("q-404", teacher)


class TestUpdateQuestion:
    """Partial updates."""

    @pytest.mark.asyncio
    async def test_creator_updates_topic(self, service, mock_db, make_result, teacher, cache):
        mock_db.execute.side_effect = [make_result(scalar=_question())]

        question = await service.update_question(
            "q-1", QuestionUpdateRequest(topic="Decimals"), teacher
        )

        assert question.topic == "Decimals"
        mock_db.commit.assert_awaited_once()
        cache.invalidate.assert_awaited_once_with(TENANT, QUESTIONS_SCOPE, EXAMS_SCOPE)

    @pytest.mark.asyncio
    async def test_replacement_answers_are_validated(
        self, service, mock_db, make_result, teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_question())]

        with pytest.raises(InvalidAnswersError):
            await service.update_question(
                "q-1",
                QuestionUpdateRequest(answers=[{"text": "a"}, {"text": "b"}]),
                teacher,
            )

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_switch_to_multiple_choice_checks_existing_answers(
        self, service, mock_db, make_result, teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_question(type="essay", answers=[]))]

        with pytest.raises(InvalidAnswersError):
            await service.update_question(
                "q-1", QuestionUpdateRequest(type="multiple_choice"), teacher
            )

    @pytest.mark.asyncio
    async def test_colleague_cannot_update_public_question(
        self, service, mock_db, make_result, other_teacher
    ):
        mock_db.execute.side_effect = [make_result(scalar=_question(is_public=True))]

        with pytest.raises(AccessDeniedError):
            await service.update_question("q-1", QuestionUpdateRequest(topic="x"), other_teacher)

    @pytest.mark.asyncio
    async def test_concurrent_change_is_a_conflict(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=_question())]
        mock_db.commit.side_effect = StaleDataError("version mismatch")

        with pytest.raises(QuestionConflictError):
            await service.update_question("q-1", QuestionUpdateRequest(topic="x"), teacher)


class TestDeleteQuestion:
    """Deletes are refused while an exam references the question."""

    @pytest.mark.asyncio
    async def test_unused_question_deleted(self, service, mock_db, make_result, teacher):
        question = _question()
        mock_db.execute.side_effect = [make_result(scalar=question), make_result(scalar=False)]

        await service.delete_question("q-1", teacher)

        mock_db.delete.assert_awaited_once_with(question)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_question_in_exam_is_kept(self, service, mock_db, make_result, teacher):
        mock_db.execute.side_effect = [make_result(scalar=_question()), make_result(scalar=True)]

        with pytest.raises(QuestionInUseError):
            await service.delete_question("q-1", teacher)

        mock_db.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_may_delete_others_question(
        self, service, mock_db, make_result, school_admin
    ):
        mock_db.execute.side_effect = [make_result(scalar=_question()), make_result(scalar=False)]

        await service.delete_question("q-1", school_admin)

        mock_db.delete.assert_awaited_once()
