"""Transaction Boundary — runs an async unit of work in one database transaction.

Invariants:
    - Begin happens before fn runs; commit only after fn returns
    - An exception raised by fn rolls back and is re-raised unchanged (never wrapped)
    - A failing rollback is logged and never replaces the exception that caused it
    - Begin/commit failures and an expired deadline raise TransactionFailedError
    - Each call uses its own session; the runner holds no per-call state

Design Decisions:
    - asyncio.timeout for deadlines: cancellation reaches the in-flight gateway
      await, so an expired request cannot leave a transaction open
    - Explicit begin instead of `async with session.begin()`: the context manager
      would roll back and re-raise commit errors untyped
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siakad.core.errors import TransactionFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyTransactionRunner:
    """TransactionRunner backed by an AsyncSession factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def run_in_transaction(
        self,
        fn: Callable[[AsyncSession], Awaitable[T]],
        *,
        timeout: float | None = None,
    ) -> T:
        """Run fn(session) inside a transaction, committing on success."""
        session = self._session_factory()
        try:
            async with asyncio.timeout(timeout):
                return await self._run(session, fn)
        except TimeoutError as e:
            logger.error(
                "Transaction deadline exceeded",
                extra={"operation": "deadline"},
            )
            raise TransactionFailedError("deadline", e) from e
        finally:
            await session.close()

    async def _run(
        self, session: AsyncSession, fn: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        try:
            await session.begin()
        except SQLAlchemyError as e:
            logger.error(f"Failed to begin transaction: {e}")
            raise TransactionFailedError("begin", e) from e

        try:
            result = await fn(session)
        except BaseException:
            await self._rollback(session)
            raise

        try:
            await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit transaction: {e}")
            await self._rollback(session)
            raise TransactionFailedError("commit", e) from e
        return result

    @staticmethod
    async def _rollback(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.error(
                f"Rollback failed: {e}", extra={"operation": "rollback"},
            )
