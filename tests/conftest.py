# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services over a mocked AsyncSession)
- Integration tests (API routing and status mapping with TestClient)
"""

from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.api.middleware.auth import CurrentUser
from src.core.config import clear_settings_cache

TENANT_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_TENANT_ID = "550e8400-e29b-41d4-a716-4466554400ff"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (API layer, mocked services)"
    )


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Load settings from a clean test environment for every test."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("REDIS_ENABLED", "false")
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create a mock AsyncSession.

    execute results are queued per test through execute.side_effect in
    the order the service issues its statements.
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()

    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=nested)
    return db


@pytest.fixture
def make_result() -> Callable[..., MagicMock]:
    """Build a mock execute() result.

    Example:
        make_result(scalar=exam)           # scalar_one_or_none / scalar_one
        make_result(scalars=[id1, id2])    # scalars().all()
        make_result(rowcount=0)            # DML result
    """

    def factory(
        scalar: Any = None,
        scalars: list[Any] | None = None,
        rowcount: int | None = None,
    ) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar_one.return_value = scalar
        result.scalar.return_value = scalar
        result.scalars.return_value.all.return_value = list(scalars or [])
        if rowcount is not None:
            result.rowcount = rowcount
        return result

    return factory


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def tenant_id() -> str:
    return TENANT_ID


@pytest.fixture
def other_tenant_id() -> str:
    return OTHER_TENANT_ID


@pytest.fixture
def teacher() -> CurrentUser:
    """Teacher of the default tenant."""
    return CurrentUser(id="teacher-1", role="teacher", tenant_id=TENANT_ID)


@pytest.fixture
def other_teacher() -> CurrentUser:
    """Second teacher of the default tenant."""
    return CurrentUser(id="teacher-2", role="teacher", tenant_id=TENANT_ID)


@pytest.fixture
def foreign_teacher() -> CurrentUser:
    """Teacher of another tenant."""
    return CurrentUser(id="teacher-9", role="teacher", tenant_id=OTHER_TENANT_ID)


@pytest.fixture
def school_admin() -> CurrentUser:
    return CurrentUser(id="admin-1", role="school_admin", tenant_id=TENANT_ID)


@pytest.fixture
def sys_admin() -> CurrentUser:
    return CurrentUser(id="root-1", role="sys_admin", tenant_id=None)


@pytest.fixture
def student() -> CurrentUser:
    return CurrentUser(id="student-1", role="student", tenant_id=TENANT_ID)
