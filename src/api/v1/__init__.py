# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    users: User creation and lookup.
    classes: Class membership management.
    questions: Question bank endpoints.
    exams: Exam composition endpoints.
    assignments: Class assignment endpoints.
    submissions: Submission and grading endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import assignments, classes, exams, questions, submissions, users

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(questions.router, prefix="/questions", tags=["Questions"])
router.include_router(exams.router, prefix="/exams", tags=["Exams"])
router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(submissions.router, prefix="/submissions", tags=["Submissions"])

__all__ = ["router"]
