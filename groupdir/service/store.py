"""
A handle on the group directory.

The same `GroupStore` type is used for all access to groups. How it reaches
the database is decided when it is constructed:

- `GroupStore.readwrite(manager)` opens a fresh session and transaction on
  the primary database for every call.
- `GroupStore.readonly(manager)` does the same, typically against a read
  replica, and refuses to create or delete groups.
- `GroupStore.using(conn)` runs every call inside a session (and
  transaction) that the caller already owns, so that a deletion can be part
  of a larger unit of work.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog.typing import FilteringBoundLogger

from groupdir.config.managers import AsyncSessionManager
from groupdir.core.group import GroupData

from . import groups as groups_service


class ReadOnlyStoreError(Exception):
    pass


class GroupStore:
    session: async_sessionmaker | None
    conn: AsyncSession | None
    writable: bool
    log: FilteringBoundLogger

    def __init__(
        self,
        session: async_sessionmaker | None = None,
        conn: AsyncSession | None = None,
        writable: bool = True,
        log: FilteringBoundLogger | None = None,
    ):
        if (session is None) == (conn is None):
            raise ValueError("Exactly one of session or conn must be provided")

        self.session = session
        self.conn = conn
        self.writable = writable
        self.log = log if log is not None else structlog.get_logger()

    @classmethod
    def readwrite(
        cls, manager: AsyncSessionManager, log: FilteringBoundLogger | None = None
    ) -> "GroupStore":
        return cls(session=manager.session, writable=True, log=log)

    @classmethod
    def readonly(
        cls, manager: AsyncSessionManager, log: FilteringBoundLogger | None = None
    ) -> "GroupStore":
        return cls(session=manager.session, writable=False, log=log)

    @classmethod
    def using(
        cls, conn: AsyncSession, log: FilteringBoundLogger | None = None
    ) -> "GroupStore":
        return cls(conn=conn, writable=True, log=log)

    @asynccontextmanager
    async def _transaction(self, write: bool) -> AsyncIterator[AsyncSession]:
        if write and not self.writable:
            raise ReadOnlyStoreError("This group store handle is read-only")

        if self.conn is not None:
            yield self.conn
            return

        async with self.session() as conn:
            async with conn.begin():
                yield conn

    async def create(
        self,
        name: str,
        creator: str,
        description: str = "",
        metadata: dict[str, str] | None = None,
    ) -> int:
        async with self._transaction(write=True) as conn:
            return await groups_service.create(
                name=name,
                created_by=creator,
                description=description,
                metadata=metadata or {},
                conn=conn,
                log=self.log,
            )

    async def get_by_name(self, name: str) -> GroupData | None:
        async with self._transaction(write=False) as conn:
            return await groups_service.read_by_name(name=name, conn=conn, log=self.log)

    async def get_by_id(self, group_id: int) -> GroupData | None:
        async with self._transaction(write=False) as conn:
            return await groups_service.read_by_id(
                group_id=group_id, conn=conn, log=self.log
            )

    async def list_all(self) -> set[GroupData]:
        async with self._transaction(write=False) as conn:
            return await groups_service.get_group_list(conn=conn, log=self.log)

    async def resolve_groups_for_secrets(
        self, secret_ids: set[int]
    ) -> dict[int, list[GroupData]]:
        async with self._transaction(write=False) as conn:
            return await groups_service.get_groups_for_secrets(
                secret_ids=secret_ids, conn=conn, log=self.log
            )

    async def delete(self, group: GroupData) -> None:
        async with self._transaction(write=True) as conn:
            await groups_service.delete_group(group=group, conn=conn, log=self.log)
