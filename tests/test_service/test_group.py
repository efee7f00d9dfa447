"""
Tests the group service layer.
"""

from datetime import datetime, timezone

import pytest

from groupdir.service import groups as groups_service


@pytest.mark.asyncio
async def test_create_group(session_manager, logger):
    before = int(datetime.now(tz=timezone.utc).timestamp())

    async with session_manager.session() as conn:
        async with conn.begin():
            GROUP_ID = await groups_service.create(
                name="test_new_group",
                created_by="admin",
                description="A group for testing",
                metadata={"owner": "infra", "app": "vault"},
                conn=conn,
                log=logger,
            )

    after = int(datetime.now(tz=timezone.utc).timestamp())

    # Try to create it again
    with pytest.raises(groups_service.DuplicateNameError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create(
                    name="test_new_group",
                    created_by="someone_else",
                    description="",
                    metadata={},
                    conn=conn,
                    log=logger,
                )

    # Read by ID
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(
                group_id=GROUP_ID, conn=conn, log=logger
            )

            assert group.name == "test_new_group"
            assert group.description == "A group for testing"
            assert group.created_by == "admin"
            assert group.updated_by == "admin"
            assert group.metadata == {"owner": "infra", "app": "vault"}
            assert group.created_at == group.updated_at
            assert before <= group.created_at <= after

    # Read by name
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_name(
                name="test_new_group", conn=conn, log=logger
            )

            assert group.group_id == GROUP_ID
            assert group.created_by == "admin"


@pytest.mark.asyncio
async def test_read_missing_group(session_manager, logger):
    async with session_manager.session() as conn:
        async with conn.begin():
            assert (
                await groups_service.read_by_id(group_id=12345, conn=conn, log=logger)
                is None
            )
            assert (
                await groups_service.read_by_name(
                    name="not_a_group", conn=conn, log=logger
                )
                is None
            )


@pytest.mark.asyncio
async def test_create_group_bad_metadata(session_manager, logger):
    with pytest.raises(groups_service.SerializationError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create(
                    name="test_bad_metadata",
                    created_by="admin",
                    description="",
                    metadata={"nested": {"not": "flat"}},
                    conn=conn,
                    log=logger,
                )

    async with session_manager.session() as conn:
        assert (
            await groups_service.read_by_name(
                name="test_bad_metadata", conn=conn, log=logger
            )
            is None
        )


@pytest.mark.asyncio
async def test_group_list(session_manager, logger, secrets, add_grants):
    async with session_manager.session() as conn:
        async with conn.begin():
            assert await groups_service.get_group_list(conn=conn, log=logger) == set()

            GROUP_IDS = [
                await groups_service.create(
                    name=name,
                    created_by="admin",
                    description="",
                    metadata={},
                    conn=conn,
                    log=logger,
                )
                for name in ["first", "second"]
            ]

    # The first group can read every secret.
    await add_grants([(secret_id, GROUP_IDS[0]) for secret_id in secrets])

    async with session_manager.session() as conn:
        groups = await groups_service.get_group_list(conn=conn, log=logger)

    assert len(groups) == 2
    assert {group.group_id for group in groups} == set(GROUP_IDS)
    assert {group.name for group in groups} == {"first", "second"}


@pytest.mark.asyncio
async def test_group_ids_not_reused(session_manager, logger):
    async with session_manager.session() as conn:
        async with conn.begin():
            FIRST_ID = await groups_service.create(
                name="short_lived",
                created_by="admin",
                description="",
                metadata={},
                conn=conn,
                log=logger,
            )
            group = await groups_service.read_by_id(
                group_id=FIRST_ID, conn=conn, log=logger
            )
            await groups_service.delete_group(group=group, conn=conn, log=logger)

    async with session_manager.session() as conn:
        async with conn.begin():
            SECOND_ID = await groups_service.create(
                name="short_lived",
                created_by="admin",
                description="",
                metadata={},
                conn=conn,
                log=logger,
            )

    assert SECOND_ID > FIRST_ID
