# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class membership domain."""

from src.domains.class_.service import (
    ClassNotFoundError,
    ClassService,
    ClassServiceError,
    MemberUserNotFoundError,
    MembershipExistsError,
    MembershipNotFoundError,
)

__all__ = [
    "ClassNotFoundError",
    "ClassService",
    "ClassServiceError",
    "MemberUserNotFoundError",
    "MembershipExistsError",
    "MembershipNotFoundError",
]
