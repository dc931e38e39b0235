# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for exam composition.

This module defines the exception hierarchy for exam operations:
- ExamServiceError: Base exception for all exam errors
- ExamNotFoundError / ExamQuestionNotFoundError: Missing rows
- InvalidExamError / InvalidCompositionError: Rejected input
- DuplicateExamQuestionError: A question placed twice in one exam
- InsufficientQuestionsError: Question bank too small for a sampling request
"""


class ExamServiceError(Exception):
    """Base exception for exam service errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ExamNotFoundError(ExamServiceError):
    """Raised when an exam is not found."""

    pass


class ExamQuestionNotFoundError(ExamServiceError):
    """Raised when a question is not placed in the exam."""

    pass


class InvalidExamError(ExamServiceError):
    """Raised when exam fields fail validation."""

    pass


class InvalidCompositionError(ExamServiceError):
    """Raised when an automatic composition cannot be built as requested.

    Covers a sampled count that differs from the requested total and a
    point split that would give each question less than one point.
    """

    pass


class DuplicateExamQuestionError(ExamServiceError):
    """Raised when the atomic creation path meets a duplicate question."""

    pass


class ExamConflictError(ExamServiceError):
    """Raised when the exam changed concurrently during an update."""

    pass


class ExamQuestionsNotFoundError(ExamServiceError):
    """Raised when referenced questions do not exist in the exam's tenant."""

    pass


class InsufficientQuestionsError(ExamServiceError):
    """Raised when a difficulty bucket has fewer questions than requested.

    Attributes:
        difficulty: The short bucket.
        found: Questions available.
        needed: Questions requested.
    """

    def __init__(self, difficulty: str, found: int, needed: int):
        self.difficulty = difficulty
        self.found = found
        self.needed = needed
        super().__init__(
            f"Not enough {difficulty} questions in the bank: found {found}, need {needed}",
            {"difficulty": difficulty, "found": found, "needed": needed},
        )
