# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums and schema building blocks."""

from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field


class UserRole(str, Enum):
    """Fixed set of platform roles."""

    SYS_ADMIN = "sys_admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    STAFF = "staff"


ADMIN_ROLES = frozenset({UserRole.SYS_ADMIN.value, UserRole.SCHOOL_ADMIN.value})


class UserStatus(str, Enum):
    """Account status; only active users are valid actors."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class TenantStatus(str, Enum):
    """Tenant approval workflow status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class TenantPlan(str, Enum):
    """Subscription plan tier."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


PLAN_MAX_STUDENTS: dict[str, int] = {
    TenantPlan.SMALL.value: 300,
    TenantPlan.MEDIUM.value: 700,
    TenantPlan.LARGE.value: 1500,
}


class SubscriptionStatus(str, Enum):
    """Billing state mirrored from the subscription service."""

    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    PENDING = "pending"


class Difficulty(str, Enum):
    """Question difficulty taxonomy, in sampling enumeration order."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    """Question kinds."""

    MULTIPLE_CHOICE = "multiple_choice"
    ESSAY = "essay"


class ClassRole(str, Enum):
    """Role of a user inside one class."""

    TEACHER = "teacher"
    STUDENT = "student"


def _canonical_uuid(value: str) -> str:
    return str(UUID(value))


# Identifier sent in a request body; canonical lower-case UUID text.
UUIDStr = Annotated[str, AfterValidator(_canonical_uuid)]


class PaginationMeta(BaseModel):
    """Pagination block returned by every list endpoint."""

    current: int = Field(description="Current 1-indexed page")
    limit: int = Field(description="Effective page size")
    total: int = Field(description="Number of matching rows across all pages")
    totalPages: int = Field(description="Number of pages for total at this limit")
    hasNext: bool = Field(description="Whether a later page exists")
    hasPrev: bool = Field(description="Whether an earlier page exists")


class PaginatedResponse(BaseModel):
    """Generic list payload: shaped rows plus pagination metadata."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    pagination: PaginationMeta


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""

    success: bool = True
    message: str
