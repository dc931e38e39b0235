# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

The Database object owns the engine and sessionmaker. It is created once
in the application lifespan, stored on app.state and handed to request
handlers through dependencies; nothing here is a module-level global.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    database = Database(settings)
    await database.connect()

    async with database.session() as session:
        result = await session.execute(select(Exam))
        exams = result.scalars().all()

    await database.dispose()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class Database:
    """Owner of the async engine and session factory.

    Attributes:
        settings: Application settings holding the database configuration.
    """

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the connection pool.

        Raises:
            DatabaseError: If connection pool creation fails.
        """
        if self._engine is not None:
            return

        try:
            self._engine = create_async_engine(
                self.settings.db.url,
                pool_size=self.settings.db.pool_size,
                max_overflow=self.settings.db.max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
                echo=self.settings.debug and self.settings.log_level == "DEBUG",
            )
            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e

    async def dispose(self) -> None:
        """Close every pooled connection."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @property
    def engine(self) -> AsyncEngine:
        """The async engine.

        Raises:
            DatabaseError: If connect() has not been called.
        """
        if self._engine is None:
            raise DatabaseError("Database not initialized. Call connect() first.")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        """The async sessionmaker.

        Raises:
            DatabaseError: If connect() has not been called.
        """
        if self._sessionmaker is None:
            raise DatabaseError("Database not initialized. Call connect() first.")
        return self._sessionmaker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session for one request.

        Services commit their own atomic units; anything left pending when
        the block exits with an error is rolled back.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if a trivial query succeeds, False otherwise.
        """
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError):
            return False
