# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question bank request/response schemas.

Shape checks (required fields, enum membership) happen here; the
answer-correctness rule for multiple-choice questions is a business rule
and is enforced by the question service on create and on answer
replacement.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import Difficulty, QuestionType, UUIDStr


class AnswerOption(BaseModel):
    """One answer choice of a multiple-choice question."""

    text: str = Field(min_length=1)
    is_correct: bool = False


class QuestionCreateRequest(BaseModel):
    """Request to add a question to the bank."""

    subject_id: UUIDStr
    topic: str = Field(min_length=1, max_length=255)
    difficulty: Difficulty
    type: QuestionType
    content: str = Field(min_length=1)
    answers: list[AnswerOption] = Field(default_factory=list)
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False


class QuestionUpdateRequest(BaseModel):
    """Partial question update; only provided fields change."""

    subject_id: UUIDStr | None = None
    topic: str | None = Field(default=None, min_length=1, max_length=255)
    difficulty: Difficulty | None = None
    type: QuestionType | None = None
    content: str | None = Field(default=None, min_length=1)
    answers: list[AnswerOption] | None = None
    image_url: str | None = None
    tags: list[str] | None = None
    is_public: bool | None = None


class QuestionResponse(BaseModel):
    """Question as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    subject_id: str
    topic: str
    difficulty: str
    type: str
    content: str
    answers: list[dict[str, Any]]
    image_url: str | None = None
    tags: list[str]
    is_public: bool
    created_by: str
    created_at: datetime
    updated_at: datetime
