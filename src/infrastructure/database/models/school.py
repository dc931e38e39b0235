# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject, class and class membership models."""

from typing import Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Subject(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """Named academic subject."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name})>"


class Class(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """A class (group of students taught together)."""

    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    members: Mapped[list["ClassUser"]] = relationship(
        back_populates="class_", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Class(id={self.id}, name={self.name})>"


class ClassUser(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """Membership of a user in a class with a per-class role."""

    __tablename__ = "class_users"
    __table_args__ = (UniqueConstraint("class_id", "user_id", name="uq_class_users_class_user"),)

    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_in_class: Mapped[str] = mapped_column(String(20), nullable=False)

    class_: Mapped[Class] = relationship(back_populates="members")

    def __repr__(self) -> str:
        return (
            f"<ClassUser(class_id={self.class_id}, user_id={self.user_id}, "
            f"role={self.role_in_class})>"
        )
