"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio
import structlog
from sqlalchemy import func, select

from groupdir.config.settings import Settings
from groupdir.database.group import AccessGrant, Group, Membership
from groupdir.database.secret import Secret


@pytest_asyncio.fixture
async def session_manager(server_settings: Settings, database):
    manager = server_settings.async_manager()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture
async def readonly_session_manager(server_settings: Settings, database):
    manager = server_settings.readonly_async_manager()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture
async def secrets(session_manager):
    """
    Three secrets with no access grants, as a list of their IDs.
    """
    async with session_manager.session() as conn:
        async with conn.begin():
            created = [Secret(name=f"secret_{i}") for i in range(3)]
            conn.add_all(created)
            await conn.flush()
            SECRET_IDS = [secret.id for secret in created]

    yield SECRET_IDS


@pytest_asyncio.fixture
def add_grants(session_manager):
    """
    Insert (secret_id, group_id) access grants.
    """

    async def insert(pairs: list[tuple[int, int]]):
        async with session_manager.session() as conn:
            async with conn.begin():
                conn.add_all(
                    [
                        AccessGrant(secret_id=secret_id, group_id=group_id)
                        for secret_id, group_id in pairs
                    ]
                )

    yield insert


@pytest_asyncio.fixture
def add_memberships(session_manager):
    """
    Insert (principal_id, group_id) memberships.
    """

    async def insert(pairs: list[tuple[int, int]]):
        async with session_manager.session() as conn:
            async with conn.begin():
                conn.add_all(
                    [
                        Membership(principal_id=principal_id, group_id=group_id)
                        for principal_id, group_id in pairs
                    ]
                )

    yield insert


@pytest_asyncio.fixture
def count_references(session_manager):
    """
    Count the group, access grant and membership rows for a group.
    """

    async def count(group_id: int) -> tuple[int, int, int]:
        async with session_manager.session() as conn:
            groups = await conn.execute(
                select(func.count()).select_from(Group).where(Group.id == group_id)
            )
            grants = await conn.execute(
                select(func.count())
                .select_from(AccessGrant)
                .where(AccessGrant.group_id == group_id)
            )
            memberships = await conn.execute(
                select(func.count())
                .select_from(Membership)
                .where(Membership.group_id == group_id)
            )

            return groups.scalar_one(), grants.scalar_one(), memberships.scalar_one()

    yield count
