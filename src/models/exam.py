# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam composition request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import Difficulty, UUIDStr


class ExamQuestionEntry(BaseModel):
    """One question to place in an exam."""

    question_id: UUIDStr
    points: float = Field(gt=0, description="Points awarded; must be positive")
    order: int | None = Field(default=None, ge=1, description="Defaults to list position")


class AutoGenerateOptions(BaseModel):
    """Stratified sampling request.

    difficulty_distribution maps each difficulty to the number of
    questions to draw from it; the counts must add up to total_questions.
    """

    enabled: bool = True
    difficulty_distribution: dict[Difficulty, int]
    total_questions: int = Field(gt=0)

    @model_validator(mode="after")
    def check_counts(self) -> "AutoGenerateOptions":
        if any(count < 0 for count in self.difficulty_distribution.values()):
            raise ValueError("Difficulty counts cannot be negative")
        return self


class ExamCreateRequest(BaseModel):
    """Create an exam manually (questions) or by sampling (auto_generate)."""

    title: str = Field(min_length=1, max_length=255)
    subject_id: UUIDStr
    duration: int = Field(gt=0, description="Duration in minutes")
    total_points: int = Field(gt=0)
    is_randomized: bool = False
    questions: list[ExamQuestionEntry] | None = None
    auto_generate: AutoGenerateOptions | None = None

    @property
    def is_auto(self) -> bool:
        return self.auto_generate is not None and self.auto_generate.enabled

    @model_validator(mode="after")
    def check_composition(self) -> "ExamCreateRequest":
        if not self.is_auto and not self.questions:
            raise ValueError("questions is required when auto_generate is not enabled")
        return self


class ExamUpdateRequest(BaseModel):
    """Fields of an exam that may change after creation."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    duration: int | None = None
    total_points: int | None = None
    is_randomized: bool | None = None


class AddExamQuestionsRequest(BaseModel):
    """Questions to append to an existing exam."""

    questions: list[ExamQuestionEntry] = Field(min_length=1)


class ExamResponse(BaseModel):
    """Exam header as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    subject_id: str
    duration: int
    total_points: int
    is_randomized: bool
    created_by: str
    created_at: datetime
    updated_at: datetime


class ExamCreatedResponse(BaseModel):
    """Result of an exam creation."""

    exam: ExamResponse
    question_count: int


class ExamDetailResponse(BaseModel):
    """Exam with expanded subject, creator and ordered questions."""

    exam: dict[str, Any]
    questions: list[dict[str, Any]]


class AddExamQuestionsResponse(BaseModel):
    """Outcome of a best-effort question link batch."""

    requested: int
    added: int
    skipped: int
