# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam composition domain.

Example:
    >>> service = ExamService(db, cache=cache, events=bus)
    >>> exam = await service.create_exam(request, actor)
"""

from src.domains.exam.exceptions import (
    DuplicateExamQuestionError,
    ExamConflictError,
    ExamNotFoundError,
    ExamQuestionNotFoundError,
    ExamQuestionsNotFoundError,
    ExamServiceError,
    InsufficientQuestionsError,
    InvalidCompositionError,
    InvalidExamError,
)
from src.domains.exam.sampling import PlannedQuestion, plan_auto_exam, points_per_question
from src.domains.exam.service import ExamService, LinkResult

__all__ = [
    "DuplicateExamQuestionError",
    "ExamConflictError",
    "ExamNotFoundError",
    "ExamQuestionNotFoundError",
    "ExamQuestionsNotFoundError",
    "ExamService",
    "ExamServiceError",
    "InsufficientQuestionsError",
    "InvalidCompositionError",
    "InvalidExamError",
    "LinkResult",
    "PlannedQuestion",
    "plan_auto_exam",
    "points_per_question",
]
