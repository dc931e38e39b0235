# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import UUIDStr


class SubmitRequest(BaseModel):
    """A student's submission; either answers or a file reference."""

    assignment_id: UUIDStr
    answers: list[Any] | None = None
    file_url: str | None = None

    @model_validator(mode="after")
    def check_content(self) -> "SubmitRequest":
        if self.answers is None and not self.file_url:
            raise ValueError("Either answers or file_url is required")
        return self


class GradeRequest(BaseModel):
    """Score and feedback for a submission."""

    score: float = Field(ge=0)
    feedback: str | None = None


class SubmissionResponse(BaseModel):
    """Submission as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    assignment_id: str
    student_id: str
    answers: list[Any] | None = None
    file_url: str | None = None
    score: float | None = None
    feedback: str | None = None
    submitted_at: datetime
    graded_at: datetime | None = None
    graded_by: str | None = None
