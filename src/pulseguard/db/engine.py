"""SQLite file backing the health store."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pulseguard.config.models import MemoryConfig
from pulseguard.db.models import Base

logger = logging.getLogger(__name__)

# Applied to every new connection
SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def _apply_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


class Database:
    """One SQLite database file and its session factory.

    Usage:
        async with Database.open(config.memory) as db:
            store = SqlHealthStore(db)
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "Database":
        return cls(config.database_path)

    @classmethod
    @asynccontextmanager
    async def open(
        cls, config: MemoryConfig, *, create_schema: bool = True
    ) -> AsyncIterator["Database"]:
        """Connect for the duration of the block, then dispose the engine."""
        database = cls.from_config(config)
        await database.connect(create_schema=create_schema)
        try:
            yield database
        finally:
            await database.disconnect()

    @property
    def url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    async def connect(self, *, create_schema: bool = False) -> None:
        """Open the engine, creating the file's directory when missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(self.url)
        event.listen(engine.sync_engine, "connect", _apply_pragmas)
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug("database_connected", extra={"path": str(self.path)})
        if create_schema:
            await self.create_schema()

    async def create_schema(self) -> None:
        """Create missing tables. Existing tables are left as they are."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """A session inside one transaction: committed on exit, rolled back on error."""
        if self._sessions is None:
            raise RuntimeError("Database is not connected")
        async with self._sessions.begin() as session:
            yield session
