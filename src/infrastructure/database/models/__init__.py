# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

All tables live in one PostgreSQL database. Tenant isolation is row
level: every model carrying TenantScopedMixin has a tenant_id column.
"""

from src.infrastructure.database.models.assessment import Exam, ExamQuestion, Question
from src.infrastructure.database.models.base import (
    VERSION_COLUMN,
    Base,
    TenantScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    is_tenant_scoped,
    new_id,
)
from src.infrastructure.database.models.coursework import Assignment, Submission
from src.infrastructure.database.models.school import Class, ClassUser, Subject
from src.infrastructure.database.models.tenant import Tenant
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TenantScopedMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "VERSION_COLUMN",
    "is_tenant_scoped",
    "new_id",
    "Tenant",
    "User",
    "Subject",
    "Class",
    "ClassUser",
    "Question",
    "Exam",
    "ExamQuestion",
    "Assignment",
    "Submission",
]
