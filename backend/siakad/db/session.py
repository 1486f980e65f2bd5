"""Async Engine & Session Factory — shared by the session manager, alembic, and test fixtures.

Invariants:
    - Every SQLite transaction starts with BEGIN IMMEDIATE (writers serialize up front)
    - PostgreSQL engines get pooling with pre-ping; SQLite engines use the dialect default pool
    - expire_on_commit=False on every factory

Design Decisions:
    - BEGIN IMMEDIATE on SQLite stands in for SELECT ... FOR UPDATE, which SQLite
      does not render: both keep a capacity count and its insert in one serialized
      critical section (ADR: row-lock isolation strategy)
    - pysqlite/aiosqlite implicit BEGIN disabled so our own BEGIN is the only one
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """Make SQLite take the write lock when a transaction begins."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(
    database_url: str, pool_size: int = 20, max_overflow: int = 10,
) -> AsyncEngine:
    """Create the async engine for the given database URL."""
    if _is_sqlite(database_url):
        engine = create_async_engine(database_url, echo=False)
        _serialize_sqlite_writers(engine)
        return engine
    return create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
