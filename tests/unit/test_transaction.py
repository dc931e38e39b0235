# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for atomic units of work."""

import asyncio

import pytest

from src.infrastructure.database.transaction import atomic, savepoint


class TestAtomic:
    """Commit on success, roll back on every raising exit path."""

    @pytest.mark.asyncio
    async def test_commits_on_success(self, mock_db) -> None:
        async with atomic(mock_db) as session:
            session.add("row")

        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self, mock_db) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            async with atomic(mock_db):
                raise RuntimeError("boom")

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_when_commit_fails(self, mock_db) -> None:
        mock_db.commit.side_effect = ValueError("commit failed")

        with pytest.raises(ValueError):
            async with atomic(mock_db):
                pass

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_on_cancellation(self, mock_db) -> None:
        with pytest.raises(asyncio.CancelledError):
            async with atomic(mock_db):
                raise asyncio.CancelledError()

        mock_db.rollback.assert_awaited_once()


class TestSavepoint:
    """Nested transactions for best-effort inserts."""

    @pytest.mark.asyncio
    async def test_uses_nested_transaction(self, mock_db) -> None:
        async with savepoint(mock_db) as session:
            assert session is mock_db

        mock_db.begin_nested.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_propagates_to_caller(self, mock_db) -> None:
        with pytest.raises(KeyError):
            async with savepoint(mock_db):
                raise KeyError("dup")

        mock_db.begin_nested.return_value.__aexit__.assert_awaited_once()
