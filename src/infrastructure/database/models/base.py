# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column mixins.

Every tenant-scoped table mixes in TenantScopedMixin; the query layer
relies on the presence of its tenant_id column to decide whether a
tenant predicate is mandatory.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from src.utils.datetime import utc_now


def new_id() -> str:
    """Generate a primary key value."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base for all Scholaris tables."""

    pass


class UUIDPrimaryKeyMixin:
    """String UUID primary key generated client-side."""

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=new_id,
    )


class TimestampMixin:
    """created_at / updated_at columns maintained on insert and update."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )


class TenantScopedMixin:
    """Owning tenant reference.

    Models carrying this mixin can only be listed through a TenantScope.
    """

    @declared_attr
    def tenant_id(cls) -> Mapped[str]:
        return mapped_column(
            UUID(as_uuid=False),
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


def is_tenant_scoped(model: type) -> bool:
    """Return True if rows of model belong to exactly one tenant."""
    return isinstance(model, type) and issubclass(model, TenantScopedMixin)


# Name of the optimistic-lock column; it is an internal marker and is
# left out of API payloads unless explicitly projected.
VERSION_COLUMN = "version_id"

__all__ = [
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    "TenantScopedMixin",
    "VERSION_COLUMN",
    "is_tenant_scoped",
    "new_id",
]
