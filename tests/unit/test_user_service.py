# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for UserService and TenantService capacity checks."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.tenant import TenantNotFoundError, TenantService
from src.domains.user import (
    EmailExistsError,
    InvalidRoleError,
    StudentLimitReachedError,
    TenantNotApprovedError,
    UserNotFoundError,
    UserService,
)
from src.infrastructure.database.models import Tenant, User
from src.models.user import UserCreateRequest

TENANT = "550e8400-e29b-41d4-a716-446655440000"


def _tenant(**overrides) -> Tenant:
    values = {
        "id": TENANT,
        "name": "Greenfield High",
        "status": "approved",
        "plan": "small",
        "max_students": None,
    }
    values.update(overrides)
    return Tenant(**values)


def _request(role: str = "student", email: str = "Ada.Lovelace@greenfield-school.org"):
    return UserCreateRequest(email=email, full_name="Ada Lovelace", role=role)


class TestTenantCapacity:
    """Student cap resolution."""

    def test_plan_default_applies_without_override(self):
        assert _tenant(plan="medium").student_capacity == 700

    def test_explicit_cap_wins(self):
        assert _tenant(plan="large", max_students=12).student_capacity == 12

    @pytest.mark.asyncio
    async def test_capacity_compares_student_count(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=2), make_result(scalar=3)]
        tenants = TenantService(mock_db)
        tenant = _tenant(max_students=3)

        assert await tenants.has_student_capacity(tenant) is True
        assert await tenants.has_student_capacity(tenant) is False

    @pytest.mark.asyncio
    async def test_missing_tenant(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(TenantNotFoundError):
            await TenantService(mock_db).get_tenant_by_id("nope")


class TestCreateUser:
    """User creation inside a tenant."""

    @pytest.mark.asyncio
    async def test_creates_student_with_normalized_email(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant()),
            make_result(scalar=None),
            make_result(scalar=10),
        ]

        user = await UserService(mock_db).create_user(_request(), TENANT)

        assert user.email == "ada.lovelace@greenfield-school.org"
        assert user.tenant_id == TENANT
        assert user.role == "student"
        assert user.status == "active"
        mock_db.add.assert_called_once_with(user)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_teacher_skips_capacity_check(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant(max_students=0)),
            make_result(scalar=None),
        ]

        user = await UserService(mock_db).create_user(_request(role="teacher"), TENANT)

        assert user.role == "teacher"
        assert mock_db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_student_cap_reached(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant(max_students=5)),
            make_result(scalar=None),
            make_result(scalar=5),
        ]

        with pytest.raises(StudentLimitReachedError):
            await UserService(mock_db).create_user(_request(), TENANT)

        mock_db.add.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tenant_row_locked_before_counting(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant()),
            make_result(scalar=None),
            make_result(scalar=10),
        ]

        await UserService(mock_db).create_user(_request(), TENANT)

        tenant_sql, _, count_sql = (str(call.args[0]) for call in mock_db.execute.await_args_list)
        assert "FROM tenants" in tenant_sql
        assert "FOR UPDATE" in tenant_sql
        assert "count(" in count_sql
        assert "FOR UPDATE" not in count_sql
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_plain_tenant_lookup_takes_no_lock(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=_tenant())]

        await TenantService(mock_db).get_tenant_by_id(TENANT)

        assert "FOR UPDATE" not in str(mock_db.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_pending_tenant_rejected(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=_tenant(status="pending"))]

        with pytest.raises(TenantNotApprovedError):
            await UserService(mock_db).create_user(_request(), TENANT)

    @pytest.mark.asyncio
    async def test_duplicate_email(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant()),
            make_result(scalar="user-7"),
        ]

        with pytest.raises(EmailExistsError):
            await UserService(mock_db).create_user(_request(), TENANT)

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_email(self, mock_db, make_result):
        mock_db.execute.side_effect = [
            make_result(scalar=_tenant()),
            make_result(scalar=None),
        ]
        mock_db.commit.side_effect = IntegrityError("INSERT INTO users", {}, Exception("dup"))

        with pytest.raises(EmailExistsError):
            await UserService(mock_db).create_user(_request(role="teacher"), TENANT)

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sys_admin_cannot_be_created_in_school(self, mock_db):
        with pytest.raises(InvalidRoleError):
            await UserService(mock_db).create_user(_request(role="sys_admin"), TENANT)

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(TenantNotFoundError):
            await UserService(mock_db).create_user(_request(), TENANT)


class TestGetUser:
    """User lookups."""

    @pytest.mark.asyncio
    async def test_tenant_restricted_lookup(self, mock_db, make_result):
        user = User(id="user-1", tenant_id=TENANT, email="a@b.org", full_name="A", role="teacher")
        mock_db.execute.side_effect = [make_result(scalar=user)]

        assert await UserService(mock_db).get_user("user-1", TENANT) is user

        sql = str(mock_db.execute.await_args.args[0])
        assert "users.tenant_id" in sql

    @pytest.mark.asyncio
    async def test_missing_user(self, mock_db, make_result):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(UserNotFoundError):
            await UserService(mock_db).get_user("user-404")
