# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import UUIDStr


class AssignmentCreateRequest(BaseModel):
    """Request to create an assignment for a class."""

    class_id: UUIDStr
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    exam_id: UUIDStr | None = None
    due_date: datetime = Field(description="Must be in the future")


class AssignmentUpdateRequest(BaseModel):
    """Partial assignment update."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    exam_id: UUIDStr | None = None
    due_date: datetime | None = None


class AssignmentResponse(BaseModel):
    """Assignment as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    class_id: str
    title: str
    description: str | None = None
    exam_id: str | None = None
    due_date: datetime
    created_by: str
    created_at: datetime
    updated_at: datetime
