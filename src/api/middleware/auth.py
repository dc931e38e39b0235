# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Actor middleware.

Tokens are verified by the gateway in front of this service, which
forwards the verified actor descriptor as headers. This middleware turns
those headers into request.state.user and binds the actor to the log
context for the duration of the request.

Example:
    GET /api/v1/exams
    X-Actor-Id: 6f1c...
    X-Actor-Role: teacher
    X-Tenant-Id: 2b9e...
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.models.common import ADMIN_ROLES, UserRole
from src.utils.logging import bind_actor, clear_actor

logger = logging.getLogger(__name__)

ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"
TENANT_ID_HEADER = "X-Tenant-Id"

_KNOWN_ROLES = frozenset(role.value for role in UserRole)


class CurrentUser:
    """Authenticated actor of the current request.

    Attributes:
        id: User id.
        role: One of the platform roles.
        tenant_id: Tenant the actor acts in; None only for a sys_admin
            acting across tenants.
    """

    def __init__(self, id: str, role: str, tenant_id: Optional[str] = None) -> None:
        self.id = id
        self.role = role
        self.tenant_id = tenant_id

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value

    def __repr__(self) -> str:
        return f"<CurrentUser(id={self.id}, role={self.role}, tenant_id={self.tenant_id})>"


def actor_from_headers(headers) -> Optional[CurrentUser]:
    """Build the actor from forwarded identity headers.

    Returns:
        The actor, or None when the headers are missing or name an
        unknown role, or a tenant-bound role comes without a tenant.
    """
    actor_id = (headers.get(ACTOR_ID_HEADER) or "").strip()
    role = (headers.get(ACTOR_ROLE_HEADER) or "").strip().lower()
    tenant_id = (headers.get(TENANT_ID_HEADER) or "").strip() or None

    if not actor_id or role not in _KNOWN_ROLES:
        return None
    if tenant_id is None and role != UserRole.SYS_ADMIN.value:
        return None
    return CurrentUser(id=actor_id, role=role, tenant_id=tenant_id)


class ActorMiddleware(BaseHTTPMiddleware):
    """Populates request.state.user from the identity headers.

    Requests without a valid descriptor continue with
    request.state.user = None; endpoints decide whether that is allowed.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        user = actor_from_headers(request.headers)
        request.state.user = user

        if user is None:
            if request.headers.get(ACTOR_ID_HEADER):
                logger.debug("Rejected actor headers for %s", request.url.path)
            return await call_next(request)

        bind_actor(user.id, user.tenant_id, user.role)
        try:
            return await call_next(request)
        finally:
            clear_actor()


def get_current_user(request: Request) -> CurrentUser | None:
    """Get current user from request state."""
    return getattr(request.state, "user", None)
