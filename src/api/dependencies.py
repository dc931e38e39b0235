# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the authenticated actor and enforce roles
- Get service instances wired to the shared cache and event bus

Example:
    @router.get("/exams")
    async def list_exams(
        current_user: CurrentUser = Depends(require_teacher_or_admin),
        service: ExamService = Depends(get_exam_service),
    ):
        ...
"""

import logging
from typing import Any, AsyncGenerator, Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import Settings, get_settings
from src.domains.assignment import AssignmentService
from src.domains.class_ import ClassService
from src.domains.exam import ExamService
from src.domains.question import QuestionService
from src.domains.submission import SubmissionService
from src.domains.user import UserService
from src.infrastructure.cache import CacheAccelerator
from src.infrastructure.events import EventBus
from src.models.common import UserRole

logger = logging.getLogger(__name__)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession bound to the shared engine.

    Raises:
        HTTPException: If the database has not been connected.
    """
    database = getattr(request.app.state, "database", None)
    if database is None or not database.is_connected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    async with database.session() as session:
        yield session


def get_cache(request: Request) -> Optional[CacheAccelerator]:
    """Get the read-through cache, or None when caching is off."""
    return getattr(request.app.state, "cache", None)


def get_event_bus(request: Request) -> Optional[EventBus]:
    """Get the application event bus."""
    return getattr(request.app.state, "event_bus", None)


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_roles(*roles: UserRole) -> Callable[[Request], CurrentUser]:
    """Build a dependency that admits only the given roles.

    Args:
        *roles: Roles allowed through.

    Returns:
        Dependency returning the authenticated actor.
    """
    allowed = tuple(role.value for role in roles)

    def dependency(request: Request) -> CurrentUser:
        user = require_auth(request)
        if not user.has_role(*allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of roles: {', '.join(allowed)}",
            )
        return user

    return dependency


require_admin = require_roles(UserRole.SYS_ADMIN, UserRole.SCHOOL_ADMIN)
require_teacher_or_admin = require_roles(
    UserRole.SYS_ADMIN, UserRole.SCHOOL_ADMIN, UserRole.TEACHER
)
require_student = require_roles(UserRole.STUDENT)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_question_service(
    db: AsyncSession = Depends(get_db),
    cache: Optional[CacheAccelerator] = Depends(get_cache),
    events: Optional[EventBus] = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
) -> QuestionService:
    return QuestionService(db, cache=cache, events=events, pagination=settings.pagination)


def get_exam_service(
    db: AsyncSession = Depends(get_db),
    cache: Optional[CacheAccelerator] = Depends(get_cache),
    events: Optional[EventBus] = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
) -> ExamService:
    return ExamService(db, cache=cache, events=events, pagination=settings.pagination)


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    events: Optional[EventBus] = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
) -> AssignmentService:
    return AssignmentService(db, events=events, pagination=settings.pagination)


def get_submission_service(
    db: AsyncSession = Depends(get_db),
    events: Optional[EventBus] = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
) -> SubmissionService:
    return SubmissionService(db, events=events, pagination=settings.pagination)


def get_class_service(db: AsyncSession = Depends(get_db)) -> ClassService:
    return ClassService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_query_params(request: Request) -> dict[str, Any]:
    """Collect list-endpoint query parameters.

    Repeated keys become lists; single keys stay plain strings so that
    bracket operators such as duration[gte]=30 reach the parser as-is.
    """
    params: dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values if len(values) > 1 else values[0]
    return params
