# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for Scholaris.

This package contains domain services that encapsulate business logic.
Each service works on a database session and enforces the shared access
control rules before it reads or changes data.

Domains:
    access_control: Capability evaluator shared by every content domain.
    question: Question bank with per-type answer validation.
    exam: Manual and automatic exam composition.
    assignment: Class assignments, optionally linked to an exam.
    submission: Student submissions and grading.
    class_: Class membership and per-class roles.
    tenant: School lookup and student capacity.
    user: User creation inside a school.
"""
