# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant model: the organizational root every other row belongs to."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import (
    PLAN_MAX_STUDENTS,
    SubscriptionStatus,
    TenantPlan,
    TenantStatus,
)


class Tenant(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A school registered on the platform.

    Attributes:
        name: Display name of the school.
        school_code: Optional short code, unique when present.
        status: Approval workflow status.
        plan: Subscription plan tier.
        max_students: Student cap; falls back to the plan default when unset.
        subscription_status: Billing state mirrored from the billing service.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    school_code: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TenantStatus.PENDING.value, index=True
    )
    plan: Mapped[str] = mapped_column(String(20), nullable=False, default=TenantPlan.SMALL.value)
    max_students: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    subscription_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionStatus.TRIAL.value
    )
    subscription_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def student_capacity(self) -> int:
        """Effective student cap for this tenant."""
        if self.max_students is not None:
            return self.max_students
        return PLAN_MAX_STUDENTS.get(self.plan, PLAN_MAX_STUDENTS[TenantPlan.SMALL.value])

    @property
    def is_approved(self) -> bool:
        return self.status == TenantStatus.APPROVED.value

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, status={self.status})>"
