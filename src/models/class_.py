# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class membership schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from src.models.common import ClassRole, UUIDStr


class AddMemberRequest(BaseModel):
    """Add a user to a class with a per-class role."""

    user_id: UUIDStr
    role_in_class: ClassRole


class ClassMemberResponse(BaseModel):
    """Class membership as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    class_id: str
    user_id: str
    role_in_class: str
    created_at: datetime
