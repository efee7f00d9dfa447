"""
Service layer for groups.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import SQLAlchemyError as StoreError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupdir.core.group import GroupData, join_groups_to_secrets
from groupdir.core.metadata import SerializationError, encode_metadata
from groupdir.database.group import AccessGrant, Group, Membership
from groupdir.database.secret import Secret


class DuplicateNameError(Exception):
    pass


async def create(
    name: str,
    created_by: str,
    description: str,
    metadata: dict[str, str],
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> int:
    """
    Create a new group.

    Parameters
    ----------
    name: str
        The name of the new group. Must not already be in use.
    created_by: str
        The principal creating the group. Also recorded as the last updater.
    description: str
        Free-form description of the group.
    metadata: dict[str, str]
        Flat string annotations for the group.

    Returns
    -------
    int
        The identifier assigned to the group by the database.

    Raises
    ------
    DuplicateNameError
        If a group with this name already exists.
    SerializationError
        If the metadata is not a flat string to string mapping.
    """
    log = log.bind(group_name=name, created_by=created_by)

    try:
        encoded_metadata = encode_metadata(metadata)
    except SerializationError as e:
        await log.aerror("group.metadata_invalid", error=str(e))
        raise e

    existing = await conn.execute(select(Group.id).where(Group.name == name))
    if existing.scalar_one_or_none() is not None:
        await log.ainfo("group.exists")
        raise DuplicateNameError(f"Group {name} already exists")

    now = int(datetime.now(tz=timezone.utc).timestamp())

    group = Group(
        name=name,
        description=description,
        created_by=created_by,
        updated_by=created_by,
        created_at=now,
        updated_at=now,
        group_metadata=encoded_metadata,
    )

    try:
        conn.add(group)
        await conn.flush()
    except IntegrityError as e:
        # Lost a race against a concurrent create with the same name.
        log = log.bind(error=e)
        await log.ainfo("group.exists")
        raise DuplicateNameError(f"Group {name} already exists") from e

    await log.ainfo("group.created", group_id=group.id)

    return group.id


async def read_by_name(
    name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> GroupData | None:
    """
    Read a group by its name, returning `None` if there is no such group.
    """
    log = log.bind(group_name=name)
    result = await conn.execute(select(Group).where(Group.name == name))
    group = result.scalar_one_or_none()

    if group is None:
        await log.adebug("group.not_found")
        return None

    await log.adebug("group.found")
    return group.to_core()


async def read_by_id(
    group_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> GroupData | None:
    """
    Read a group by its ID, returning `None` if there is no such group.
    """
    log = log.bind(group_id=group_id)
    result = await conn.execute(select(Group).where(Group.id == group_id))
    group = result.scalar_one_or_none()

    if group is None:
        await log.adebug("group.not_found")
        return None

    await log.adebug("group.found")
    return group.to_core()


async def get_group_list(
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> set[GroupData]:
    """
    Get every group in the database.

    Returns
    -------
    set[GroupData]
        All groups, at most one entry per group ID.
    """
    result = await conn.execute(select(Group))
    groups = {group.to_core() for group in result.scalars().all()}
    await log.adebug("group.listed", number_of_groups=len(groups))
    return groups


async def get_groups_for_secrets(
    secret_ids: set[int],
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> dict[int, list[GroupData]]:
    """
    Resolve the groups that may access each of a batch of secrets.

    Two queries are made regardless of the number of secrets: one for the
    distinct groups involved and one for the (secret, group) grant pairs.
    They are joined in memory.

    Parameters
    ----------
    secret_ids: set[int]
        The secrets to resolve.

    Returns
    -------
    dict[int, list[GroupData]]
        Groups for each secret, in grant order. Secrets without any access
        grant are not present as keys.
    """
    log = log.bind(number_of_secrets=len(secret_ids))

    if not secret_ids:
        await log.adebug("group.secrets_resolved", number_of_grants=0)
        return {}

    requested = list(secret_ids)

    group_query = (
        select(Group)
        .join(AccessGrant, AccessGrant.group_id == Group.id)
        .join(Secret, Secret.id == AccessGrant.secret_id)
        .where(Secret.id.in_(requested))
        .distinct()
    )
    groups = [group.to_core() for group in (await conn.execute(group_query)).scalars()]

    pair_query = (
        select(AccessGrant.secret_id, AccessGrant.group_id)
        .join(Group, AccessGrant.group_id == Group.id)
        .join(Secret, Secret.id == AccessGrant.secret_id)
        .where(Secret.id.in_(requested))
        .order_by(AccessGrant.secret_id, AccessGrant.group_id)
    )
    pairs = (await conn.execute(pair_query)).all()

    await log.adebug(
        "group.secrets_resolved",
        number_of_groups=len(groups),
        number_of_grants=len(pairs),
    )

    return join_groups_to_secrets(groups=groups, pairs=pairs)


async def delete_group(
    group: GroupData,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Delete a group along with every access grant and membership that
    references it.

    All three deletions run on `conn` and so commit or roll back together
    with the transaction it belongs to. Deleting a group that no longer
    exists is not an error.
    """
    log = log.bind(group_id=group.group_id, group_name=group.name)

    try:
        grants = await conn.execute(
            delete(AccessGrant).where(AccessGrant.group_id == group.group_id)
        )
        memberships = await conn.execute(
            delete(Membership).where(Membership.group_id == group.group_id)
        )
        groups = await conn.execute(delete(Group).where(Group.id == group.group_id))
    except StoreError as e:
        await log.aerror("group.delete_failed", error=str(e))
        raise e

    await log.ainfo(
        "group.deleted",
        number_of_groups=groups.rowcount,
        number_of_grants=grants.rowcount,
        number_of_memberships=memberships.rowcount,
    )
