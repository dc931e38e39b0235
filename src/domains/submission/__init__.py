# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission and grading domain."""

from src.domains.submission.service import (
    DeadlinePassedError,
    InvalidScoreError,
    SubmissionLockedError,
    SubmissionNotFoundError,
    SubmissionService,
    SubmissionServiceError,
)

__all__ = [
    "DeadlinePassedError",
    "InvalidScoreError",
    "SubmissionLockedError",
    "SubmissionNotFoundError",
    "SubmissionService",
    "SubmissionServiceError",
]
