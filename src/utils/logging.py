# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for Scholaris.

Application modules log through ``logging.getLogger(__name__)``. The
root handler installed here renders those stdlib records with structlog,
so every line carries the service name, the environment and whatever
actor is bound for the current request:

    >>> setup_logging(get_settings())
    >>> bind_actor("teacher-1", "550e8400-...", "teacher")
    >>> logging.getLogger("src.api.v1.exams").info("Exam created")
    ... event='Exam created' actor_id='teacher-1' tenant_id='550e8400-...' role='teacher'

Output is JSON outside development and colored console text otherwise.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from src.core.config.settings import Settings

ACTOR_FIELDS = ("actor_id", "tenant_id", "role")

_NOISY_LOGGERS = (
    "uvicorn.access",
    "asyncpg",
    "redis",
    "sqlalchemy.engine",
    "asyncio",
)


class ServiceContext:
    """Processor stamping the service name and environment on each event."""

    def __init__(self, service: str, environment: str) -> None:
        self.service = service
        self.environment = environment

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service)
        event_dict.setdefault("environment", self.environment)
        return event_dict


def build_processors(settings: "Settings") -> list[Processor]:
    """Processors shared by structlog loggers and bridged stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        ServiceContext(settings.app_name, settings.environment),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(settings: "Settings") -> Processor:
    if settings.is_development or settings.debug:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def setup_logging(settings: "Settings") -> logging.Handler:
    """Install the structured root handler and configure structlog.

    Safe to call more than once; the previous root handlers are replaced.

    Args:
        settings: Application settings (log level, environment, app name).

    Returns:
        The handler attached to the root logger.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    shared = build_processors(settings)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler


def bind_actor(actor_id: str, tenant_id: str | None, role: str) -> None:
    """Attach the authenticated actor to every log line of this request."""
    structlog.contextvars.bind_contextvars(actor_id=actor_id, tenant_id=tenant_id, role=role)


def clear_actor() -> None:
    """Drop the actor fields bound by :func:`bind_actor`."""
    structlog.contextvars.unbind_contextvars(*ACTOR_FIELDS)
