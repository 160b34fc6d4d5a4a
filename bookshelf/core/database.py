"""Database engine, sessions and transaction helpers."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from bookshelf.core.config import get_settings

T = TypeVar("T")


class Base(DeclarativeBase):
    """Declarative base for all models."""


def configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and working SAVEPOINTs on a SQLite engine.

    The sqlite3 driver issues its own BEGIN lazily, which breaks nested
    transactions. Turning that off and emitting BEGIN from SQLAlchemy's
    ``begin`` event is the recipe from the SQLAlchemy SQLite dialect docs.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, applying SQLite fixes where needed."""
    engine = create_async_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        configure_sqlite(engine)
    return engine


settings = get_settings()

engine = create_engine_from_url(settings.database_url, echo=settings.database_echo)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a session per request.

    The session is committed when the handler returns and rolled back if it raises.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables."""
    # Import models so they are registered on the metadata
    import bookshelf.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()


async def run_in_transaction(
    session: AsyncSession,
    work: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Run ``work`` as a single unit of work.

    The work runs inside a SAVEPOINT on the given session. If it raises, every
    write it made is rolled back and the exception propagates; otherwise its
    writes become part of the surrounding transaction.
    """
    async with session.begin_nested():
        return await work(session)
