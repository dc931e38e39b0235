# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for Scholaris.

This package contains cross-cutting utilities:
- logging: stdlib records rendered through structlog, actor context
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    ensure_utc,
    is_expired,
    is_in_future,
    parse_iso,
    utc_now,
)
from src.utils.logging import bind_actor, clear_actor, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "bind_actor",
    "clear_actor",
    # Datetime
    "utc_now",
    "ensure_utc",
    "is_expired",
    "is_in_future",
    "parse_iso",
]
