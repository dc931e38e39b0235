# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for API tests.

The application is built with create_app() but its lifespan is never
entered: no database or Redis is contacted. Services are replaced
through dependency_overrides and the actor is passed as the forwarded
identity headers.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.app import create_app

TENANT_ID = "550e8400-e29b-41d4-a716-446655440000"


def _headers(actor_id: str, role: str, tenant_id: str | None = TENANT_ID) -> dict[str, str]:
    headers = {"X-Actor-Id": actor_id, "X-Actor-Role": role}
    if tenant_id:
        headers["X-Tenant-Id"] = tenant_id
    return headers


@pytest.fixture
def app() -> FastAPI:
    """Create the application without running its lifespan."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def override(app: FastAPI):
    """Replace a service dependency with an AsyncMock and return the mock."""

    def _override(dependency) -> AsyncMock:
        service = AsyncMock()
        app.dependency_overrides[dependency] = lambda: service
        return service

    return _override


@pytest.fixture
def teacher_headers() -> dict[str, str]:
    return _headers("teacher-1", "teacher")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return _headers("admin-1", "school_admin")


@pytest.fixture
def sys_admin_headers() -> dict[str, str]:
    return _headers("root-1", "sys_admin", tenant_id=None)


@pytest.fixture
def student_headers() -> dict[str, str]:
    return _headers("student-1", "student")
