# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question bank domain."""

from src.domains.question.service import (
    InvalidAnswersError,
    QuestionConflictError,
    QuestionInUseError,
    QuestionNotFoundError,
    QuestionService,
    QuestionServiceError,
    SubjectNotFoundError,
    validate_answers,
)

__all__ = [
    "InvalidAnswersError",
    "QuestionConflictError",
    "QuestionInUseError",
    "QuestionNotFoundError",
    "QuestionService",
    "QuestionServiceError",
    "SubjectNotFoundError",
    "validate_answers",
]
