"""Scholaris Backend.

Multi-tenant school management backend: question bank, exam composition,
assignments and submissions with row-level, role-based access control.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
