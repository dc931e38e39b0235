# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control evaluator shared by every content domain."""

from src.domains.access_control.policy import (
    AccessDeniedError,
    ResourceType,
    actor_tenant,
    can_access,
    can_grade,
    can_mutate,
    ensure_access,
    ensure_mutation,
    is_admin,
)

__all__ = [
    "AccessDeniedError",
    "ResourceType",
    "actor_tenant",
    "can_access",
    "can_grade",
    "can_mutate",
    "ensure_access",
    "ensure_mutation",
    "is_admin",
]
