# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for structured logging setup."""

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from src.core.config.settings import Settings
from src.utils.logging import bind_actor, clear_actor, setup_logging

TENANT_ID = "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Put the root logger and structlog back the way the test found them."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _json_settings() -> Settings:
    return Settings(environment="staging", debug=False, log_level="INFO")


def _record(message: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("src.api.v1.exams", logging.INFO, __file__, 1, message, args, None)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_stdlib_records_rendered_as_json(self) -> None:
        handler = setup_logging(_json_settings())

        line = json.loads(handler.format(_record("Exam %s created", "exam-1")))

        assert line["event"] == "Exam exam-1 created"
        assert line["level"] == "info"
        assert line["logger"] == "src.api.v1.exams"
        assert line["service"] == "scholaris"
        assert line["environment"] == "staging"
        assert "timestamp" in line

    def test_replaces_root_handlers(self) -> None:
        setup_logging(_json_settings())
        handler = setup_logging(_json_settings())

        root = logging.getLogger()
        assert root.handlers == [handler]
        assert root.level == logging.INFO

    def test_quiets_driver_loggers(self) -> None:
        setup_logging(_json_settings())

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("asyncpg").level == logging.WARNING

    def test_development_renders_console_text(self) -> None:
        handler = setup_logging(Settings(environment="development"))

        assert isinstance(handler.formatter.processors[-1], structlog.dev.ConsoleRenderer)


class TestActorContext:
    """Tests for bind_actor and clear_actor."""

    def test_bound_actor_is_on_every_record(self) -> None:
        handler = setup_logging(_json_settings())

        bind_actor("teacher-1", TENANT_ID, "teacher")
        line = json.loads(handler.format(_record("Listing exams")))

        assert line["actor_id"] == "teacher-1"
        assert line["tenant_id"] == TENANT_ID
        assert line["role"] == "teacher"

    def test_clear_actor_keeps_other_context(self) -> None:
        handler = setup_logging(_json_settings())
        structlog.contextvars.bind_contextvars(job="outbox-relay")

        bind_actor("root-1", None, "system_admin")
        clear_actor()
        line = json.loads(handler.format(_record("Relayed events")))

        assert "actor_id" not in line
        assert "role" not in line
        assert line["job"] == "outbox-relay"
