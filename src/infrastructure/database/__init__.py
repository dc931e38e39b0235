# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL.

Example:
    from src.infrastructure.database import Database, atomic

    database = Database(settings)
    await database.connect()

    async with database.session() as session:
        async with atomic(session):
            session.add(exam)
"""

from src.infrastructure.database.connection import Database, DatabaseError
from src.infrastructure.database.transaction import atomic, savepoint

__all__ = [
    "Database",
    "DatabaseError",
    "atomic",
    "savepoint",
]
