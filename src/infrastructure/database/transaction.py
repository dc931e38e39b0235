# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Atomic units of work.

Multi-row writes that must become visible together (an exam and its
question links, an exam delete with its links) run inside ``atomic``.
The unit commits when the block finishes and rolls back on every exit
path that raises, including unexpected errors, before the exception
propagates unchanged.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed writes as one all-or-nothing unit.

    Args:
        session: Session the writes are issued on.

    Yields:
        The same session.

    Raises:
        Whatever the block raised, after the rollback has completed.

    Example:
        async with atomic(session):
            session.add(exam)
            await session.flush()
            session.add_all(links)
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        logger.debug("Rolling back atomic unit")
        await session.rollback()
        raise


@asynccontextmanager
async def savepoint(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed writes in a nested transaction.

    A failure inside the block rolls back only the savepoint; the outer
    transaction stays usable. Used by best-effort multi-row inserts.

    Args:
        session: Session the writes are issued on.

    Yields:
        The same session.
    """
    async with session.begin_nested():
        yield session
