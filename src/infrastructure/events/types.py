# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions for Scholaris.

Event names follow "<entity>.<change>" so that listeners can subscribe
to a whole entity with "<entity>.*".
"""


class EventTypes:
    """All event types organized by domain."""

    class Exam:
        """Exam composition events."""

        CREATED = "exam.created"
        UPDATED = "exam.updated"
        DELETED = "exam.deleted"

    class Question:
        """Question bank events."""

        CREATED = "question.created"
        UPDATED = "question.updated"
        DELETED = "question.deleted"

    class Assignment:
        """Assignment events; CREATED carries the class's student ids."""

        CREATED = "assignment.created"
        UPDATED = "assignment.updated"
        DELETED = "assignment.deleted"

    class Submission:
        """Submission lifecycle events."""

        SUBMITTED = "submission.submitted"
        GRADED = "submission.graded"
