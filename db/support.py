"""Request-scoped database sessions, transactions and savepoints.

Every scope borrows one pooled connection and gives it back on every exit
path. ``db_session`` behaves like autocommit and keeps whatever ran
before a fault. ``db_transaction`` commits on normal return and rolls back on any
exception, cancellation included, so a request never leaves a partial
commit behind. ``savepoint`` lets one step inside a transaction fail and
roll back without aborting its siblings.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.base import async_session_factory

logger = logging.getLogger("webapp.db")

T = TypeVar("T")


def map_from_row(row: Row) -> dict[str, Any]:
    """Return a result row as a plain column -> value dict."""
    return dict(row._mapping)


@asynccontextmanager
async def db_session(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    """Non-transactional session: statements already run are committed on every exit path.

    Like autocommit, work done before an exception is kept. If that commit
    itself fails, the original exception is the one raised.
    """
    async with (factory or async_session_factory)() as session:
        try:
            yield session
        except BaseException:
            try:
                await session.commit()
            except SQLAlchemyError:
                logger.warning("Could not commit session work after a fault", exc_info=True)
            raise
        await session.commit()


@asynccontextmanager
async def db_transaction(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    """Session with an explicit transaction: commit on return, rollback on any exception."""
    async with (factory or async_session_factory)() as session:
        async with session.begin():
            yield session


@asynccontextmanager
async def savepoint(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Nested transaction inside ``session``'s current transaction.

    Released when the block succeeds. When it raises, only the work done
    inside the block is rolled back and the exception is re-raised; the
    enclosing transaction stays open.
    """
    nested = await session.begin_nested()
    try:
        yield session
    except BaseException:
        logger.warning("Got exception, will roll back to savepoint")
        await nested.rollback()
        raise
    await nested.commit()


async def with_db_session(
    body: Callable[[AsyncSession], Awaitable[T]],
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> T:
    async with db_session(factory) as session:
        return await body(session)


async def with_db_transaction(
    body: Callable[[AsyncSession], Awaitable[T]],
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> T:
    async with db_transaction(factory) as session:
        return await body(session)


async def with_savepoint(session: AsyncSession, body: Callable[[], Awaitable[T]]) -> T:
    async with savepoint(session):
        return await body()
