# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.common import UserRole


class UserCreateRequest(BaseModel):
    """Create a user inside the actor's tenant."""

    email: EmailStr
    full_name: str = Field(min_length=1, max_length=255)
    role: UserRole
    password_hash: str | None = Field(
        default=None,
        description="Credential hash issued by the identity provider",
    )


class UserResponse(BaseModel):
    """User as returned by the API; never includes the credential hash."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str | None = None
    email: str
    full_name: str
    role: str
    status: str
    created_at: datetime
