# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment domain package.

This package provides class coursework management:
- Assignment creation with due-date validation
- Class assignment listing and detail reads
- Assignment update and deletion
"""

from src.domains.assignment.service import (
    AssignmentExamNotFoundError,
    AssignmentNotFoundError,
    AssignmentService,
    AssignmentServiceError,
    InvalidDueDateError,
)

__all__ = [
    "AssignmentExamNotFoundError",
    "AssignmentNotFoundError",
    "AssignmentService",
    "AssignmentServiceError",
    "InvalidDueDateError",
]
