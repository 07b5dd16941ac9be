# library_api/database.py
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """Owns the async engine and the session factory.

    Built once per application (see ``main.create_app``), tables are created
    in ``create_all`` at startup and connections released in ``dispose`` at
    shutdown.
    """

    def __init__(self, url: str, echo: bool = False, timeout: float = 10.0):
        connect_args = {}
        self.is_sqlite = url.startswith("sqlite")
        if self.is_sqlite:
            connect_args["timeout"] = timeout
        self.engine = create_async_engine(url, echo=echo, connect_args=connect_args)
        self.session_factory = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


async def get_db(request: Request):
    async with request.app.state.db.session() as session:
        yield session
