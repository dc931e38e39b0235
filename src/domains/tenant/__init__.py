# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant domain package."""

from src.domains.tenant.service import TenantNotFoundError, TenantService, TenantServiceError

__all__ = ["TenantNotFoundError", "TenantService", "TenantServiceError"]
