"""
Core client, including session management.
"""

from sqlalchemy import URL, Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, create_engine

# Registers every table on SQLModel.metadata before create_all runs.
from groupdir.database.meta import ALL_TABLES  # noqa: F401


class SyncSessionManager:
    """
    A manager for synchronous sessions. Expected usage of this class to interact:

    manager = SyncSessionManager(conn_url)

    with manager.session() as conn:
        group = conn.get(Group, 1)
    """

    connection_url: str | URL
    engine: Engine
    session: sessionmaker

    def __init__(self, connection_url: str | URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_engine(self.connection_url, echo=echo)
        self.session = sessionmaker(self.engine)

    def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        with self.engine.begin() as conn:
            SQLModel.metadata.create_all(conn)

    def drop_all(self):
        """
        Run the `SQLModel.metadata.drop_all` deletion method. WARNING: this
        will delete all data in your database; you probably don't want to do this
        unless you are writing a test.
        """
        with self.engine.begin() as conn:
            SQLModel.metadata.drop_all(conn)


class AsyncSessionManager:
    """
    A manager for asynchronous sessions. Expected usage of this class to interact:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        group = await groups_service.read_by_id(group_id=1, conn=conn, log=log)
    """

    connection_url: str | URL
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: str | URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)
        # Groups are converted to core objects after commit, so keep the
        # loaded attributes around.
        self.session = async_sessionmaker(self.engine, expire_on_commit=False)

    async def dispose(self):
        """
        Close every pooled connection held by the engine.
        """
        await self.engine.dispose()
