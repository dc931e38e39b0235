# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for Scholaris.

Settings are environment driven; use get_settings() for the cached
singleton.
"""

from src.core.config.settings import (
    CacheSettings,
    CORSSettings,
    DatabaseSettings,
    PaginationSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "Settings",
    "DatabaseSettings",
    "RedisSettings",
    "CacheSettings",
    "PaginationSettings",
    "CORSSettings",
    "get_settings",
    "clear_settings_cache",
]
