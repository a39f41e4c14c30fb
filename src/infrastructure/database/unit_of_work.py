# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transaction boundary for multi-statement writes.

A UnitOfWork checks one session out of the pool for one logical write.
Everything executed on that session is committed together when the block
exits normally. Any exception, including one raised by the commit itself,
rolls the transaction back before the exception propagates. The session
is closed exactly once on every path.

Services never commit; they receive the session and flush.

Example:
    uow = UnitOfWork(get_sessionmaker())
    async with uow as session:
        await AttendanceService(session).record(actor, request)

    # or
    result = await uow.run(lambda session: service_call(session))
"""

import logging
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.infrastructure.database.connection import get_sessionmaker

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """Async context manager owning one session and one transaction.

    A UnitOfWork instance is single use at a time: entering it while it is
    already active raises RuntimeError.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker
        self._session: Optional[AsyncSession] = None

    @property
    def active(self) -> bool:
        """Whether a transaction is currently open."""
        return self._session is not None

    @property
    def session(self) -> AsyncSession:
        """The session of the open transaction.

        Raises:
            RuntimeError: If the unit of work has not been entered.
        """
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active")
        return self._session

    async def __aenter__(self) -> AsyncSession:
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active")
        self._session = self._sessionmaker()
        return self._session

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        session = self.session
        self._session = None
        try:
            if exc_type is None:
                try:
                    await session.commit()
                except BaseException:
                    await self._rollback(session)
                    raise
            else:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                await self._rollback(session)
        finally:
            await session.close()
        return False

    @staticmethod
    async def _rollback(session: AsyncSession) -> None:
        # A failed rollback must not mask the error that caused it
        try:
            await session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")

    async def run(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Execute work inside this unit of work.

        Args:
            work: Coroutine function receiving the session.

        Returns:
            Whatever work returns, after the commit succeeded.
        """
        async with self as session:
            return await work(session)


def unit_of_work() -> UnitOfWork:
    """Create a UnitOfWork on the process sessionmaker."""
    return UnitOfWork(get_sessionmaker())
