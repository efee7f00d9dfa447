"""
Core group data models.
"""

from typing import Iterable

from pydantic import BaseModel, Field


class GroupData(BaseModel):
    group_id: int
    name: str
    description: str = ""
    created_by: str
    updated_by: str
    created_at: int
    updated_at: int
    metadata: dict[str, str] = Field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.group_id)


def join_groups_to_secrets(
    groups: Iterable[GroupData], pairs: Iterable[tuple[int, int]]
) -> dict[int, list[GroupData]]:
    """
    Join a set of groups against (secret_id, group_id) pairs.

    Groups are indexed by id once, so secrets sharing a group share the same
    object. Each secret's list keeps the order of `pairs`. Secrets that appear
    in no pair are not keys of the result.

    Parameters
    ----------
    groups: Iterable[GroupData]
        The groups reachable from the secrets. Duplicates are collapsed.
    pairs: Iterable[tuple[int, int]]
        The (secret_id, group_id) access grants for the same secrets.

    Raises
    ------
    KeyError
        If a pair references a group that is not in `groups`.
    """
    group_index = {group.group_id: group for group in groups}

    resolved: dict[int, list[GroupData]] = {}

    for secret_id, group_id in pairs:
        resolved.setdefault(secret_id, []).append(group_index[group_id])

    return resolved
