"""
Database connection and session management

Provides async SQLAlchemy engines with SQLModel tables. SQLite (via
aiosqlite) is the default; PostgreSQL URLs are served through asyncpg.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, List, Optional

from sqlalchemy import Table, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from core.config import normalize_database_url
from core.errors import StorageError
from core.logging import get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    """WAL lets one writer and many readers proceed together."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


class Database:
    """
    One async engine plus its session factory.

    Usage:
        db = Database("sqlite+aiosqlite:///./data/data.db")
        await db.create_tables()
        async with db.transaction("count submissions") as session:
            result = await session.execute(select(Submission))
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = normalize_database_url(url)
        parsed = make_url(self.url)
        engine_kwargs = {"echo": echo}

        if parsed.get_backend_name() == "sqlite":
            database = parsed.database
            if not database or database == ":memory:":
                # Every connection would otherwise get its own empty database
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                Path(database).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_async_engine(self.url, **engine_kwargs)
        if self.dialect == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragmas)

        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """
        Session that commits on success and rolls back on any error.

        Driver and SQL errors are logged with context and re-raised as
        ``StorageError``; other exceptions propagate unchanged.
        """
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(
                    f"Storage failure during {operation}",
                    extra={"operation": operation, "dialect": self.dialect, "error": str(e)},
                    exc_info=True
                )
                raise StorageError(f"Storage failure during {operation}") from e
            except BaseException:
                await session.rollback()
                raise

    async def create_tables(self, tables: Optional[List[Table]] = None) -> None:
        """Create the given tables (all SQLModel tables by default) if missing."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all, tables=tables)
        except SQLAlchemyError as e:
            logger.error("Could not create tables", extra={"error": str(e)}, exc_info=True)
            raise StorageError("Could not create tables") from e

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
