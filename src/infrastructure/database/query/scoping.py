# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mandatory tenant scoping for tenant-owned tables.

TenantScope is the only way the query layer hands out a base SELECT for
a model that carries a tenant_id column. Scopes built from an actor
always carry that actor's tenant predicate; the single escape hatch is
TenantScope.unrestricted(), which only a sys_admin actor may obtain
through for_actor().
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from sqlalchemy import Select, select
from sqlalchemy.sql.elements import ColumnElement

from src.infrastructure.database.models.base import is_tenant_scoped
from src.models.common import UserRole


class TenantScopeRequiredError(Exception):
    """A tenant-scoped model was queried without a tenant scope."""

    pass


class ActorLike(Protocol):
    """Anything carrying the authenticated actor's role and tenant."""

    id: str
    role: str
    tenant_id: Optional[str]


@dataclass(frozen=True)
class TenantScope:
    """Tenant predicate for one request.

    Attributes:
        tenant_id: Tenant every row must belong to; None only when
            the scope is unrestricted.
        unrestricted_access: True for the explicit cross-tenant scope.
    """

    tenant_id: Optional[str]
    unrestricted_access: bool = False

    def __post_init__(self) -> None:
        if not self.unrestricted_access and not self.tenant_id:
            raise TenantScopeRequiredError("A tenant scope needs a tenant_id")

    @classmethod
    def for_tenant(cls, tenant_id: str) -> "TenantScope":
        return cls(tenant_id=tenant_id)

    @classmethod
    def unrestricted(cls) -> "TenantScope":
        """Scope spanning every tenant. Reserved for platform administrators."""
        return cls(tenant_id=None, unrestricted_access=True)

    @classmethod
    def for_actor(cls, actor: ActorLike) -> "TenantScope":
        """Derive the scope an actor is allowed to read within.

        A sys_admin without a tenant gets the unrestricted scope; a
        sys_admin acting inside a tenant is scoped to it. Every other
        role must carry a tenant.

        Raises:
            TenantScopeRequiredError: If a non-sys_admin actor has no tenant.
        """
        if actor.role == UserRole.SYS_ADMIN.value and not actor.tenant_id:
            return cls.unrestricted()
        if not actor.tenant_id:
            raise TenantScopeRequiredError(f"Actor {actor.id} has no tenant")
        return cls.for_tenant(actor.tenant_id)

    def predicate(self, model: type) -> Optional[ColumnElement[bool]]:
        """Tenant clause for model, or None when nothing needs adding."""
        if self.unrestricted_access or not is_tenant_scoped(model):
            return None
        return model.tenant_id == self.tenant_id

    def apply(self, stmt: Select[Any], model: type) -> Select[Any]:
        """Add the tenant predicate for model to an existing statement."""
        clause = self.predicate(model)
        return stmt if clause is None else stmt.where(clause)

    def select(self, model: type) -> Select[Any]:
        """Base SELECT over model with the tenant predicate applied."""
        return self.apply(select(model), model)


def scoped_select(model: type, scope: Optional[TenantScope]) -> Select[Any]:
    """Base SELECT for model, refusing tenant-scoped models without a scope.

    Raises:
        TenantScopeRequiredError: If model is tenant scoped and scope is None.
    """
    if scope is None:
        if is_tenant_scoped(model):
            raise TenantScopeRequiredError(
                f"{model.__name__} is tenant scoped; a TenantScope is required"
            )
        return select(model)
    return scope.select(model)
