"""
Persistence gateway.

Wraps the async session factory with scoped transactions and a bounded
statement timeout. Storage outages surface as ``Unavailable`` so callers can
retry; every other exception propagates unchanged after rollback.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from core.config import settings
from core.errors import Unavailable

logger = logging.getLogger(__name__)

# Failures that mean "storage unreachable or too slow", not "bad request"
STORAGE_OUTAGE_ERRORS = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
)


class PersistenceGateway:
    """Executes statements against the relational store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        statement_timeout: Optional[float] = None,
    ):
        """
        Args:
            session_factory: Async session maker bound to an engine
            statement_timeout: Upper bound in seconds for a single statement
        """
        self._session_factory = session_factory
        self.statement_timeout = statement_timeout or settings.database_statement_timeout

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session for reads. Nothing is committed."""
        async with self._session_factory() as session:
            try:
                yield session
            except STORAGE_OUTAGE_ERRORS as exc:
                logger.error(f"Storage unavailable during read: {type(exc).__name__}")
                raise Unavailable() from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session inside one database transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except STORAGE_OUTAGE_ERRORS as exc:
                logger.error(
                    f"Storage unavailable, transaction rolled back: {type(exc).__name__}"
                )
                raise Unavailable() from exc

    async def execute(self, session: AsyncSession, statement: Executable) -> Any:
        """Execute one statement, bounded by the statement timeout."""
        return await asyncio.wait_for(
            session.execute(statement), timeout=self.statement_timeout
        )

    async def scalar(self, session: AsyncSession, statement: Executable) -> Any:
        """Execute and return the first column of the first row, or None."""
        result = await self.execute(session, statement)
        return result.scalar_one_or_none()

    async def ping(self) -> bool:
        """Round-trip a trivial query. Used by the readiness check."""
        async with self.session() as session:
            await self.execute(session, text("SELECT 1"))
        return True
