# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware."""

from src.api.middleware.auth import ActorMiddleware, CurrentUser, get_current_user

__all__ = ["ActorMiddleware", "CurrentUser", "get_current_user"]
