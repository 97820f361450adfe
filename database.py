from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from config import settings
from db.builders import InsertBuilder
from db.errors import StorageError
from db.schema import metadata

logger = structlog.get_logger()


def _get_engine_kwargs(database_url: str):
    """Return dialect-specific engine options for SQLite vs PostgreSQL/MySQL."""
    kwargs = {"echo": settings.debug}
    if database_url.split(":")[0].lower().startswith("sqlite"):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement off, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(database_url: str) -> AsyncEngine:
    new_engine = create_async_engine(database_url, **_get_engine_kwargs(database_url))
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


engine = _create_engine(settings.database_url)


def configure_engine(database_url: str) -> AsyncEngine:
    """Point the module engine at another database (tests, scripts)."""
    global engine
    engine = _create_engine(database_url)
    return engine


@asynccontextmanager
async def connect(error_message: str = "Unable to execute the statement with SQL") -> AsyncIterator[AsyncConnection]:
    """
    Borrow one connection for the duration of an entity operation.
    Commits when the block exits cleanly, rolls back otherwise, and always releases
    the connection. Driver failures surface as StorageError carrying error_message.
    """
    try:
        async with engine.connect() as conn:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
    except SQLAlchemyError as e:
        logger.error("storage_failure", detail=error_message, error=str(e))
        raise StorageError(error_message) from e


async def execute_insert(conn: AsyncConnection, builder: InsertBuilder, id_column: str = "id") -> Optional[int]:
    """Run an INSERT and return the generated identity, or None if no row was written."""
    if conn.dialect.insert_returning:
        result = await conn.execute(builder.returning(id_column).statement())
        return result.scalar_one_or_none()
    result = await conn.execute(builder.statement())
    if result.rowcount != 1:
        return None
    return result.lastrowid


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
