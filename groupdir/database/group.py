"""
Group ORM, along with the association tables that reference groups.
"""

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from groupdir.core.group import GroupData
from groupdir.core.metadata import decode_metadata


class AccessGrant(SQLModel, table=True):
    """
    A record authorizing a group to read a secret.
    """

    __tablename__ = "accessgrants"

    group_id: int = Field(primary_key=True, foreign_key="groups.id")
    secret_id: int = Field(primary_key=True, foreign_key="secrets.id")


class Membership(SQLModel, table=True):
    """
    A record of a principal's group membership. Principals live outside of
    this database, so only their identifier is kept.
    """

    __tablename__ = "memberships"

    group_id: int = Field(primary_key=True, foreign_key="groups.id")
    principal_id: int = Field(primary_key=True)


class Group(SQLModel, table=True):
    __tablename__ = "groups"
    # Never hand out an id that belonged to a deleted group.
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(unique=True)
    description: str = Field(default="")

    created_by: str
    updated_by: str
    # Epoch seconds.
    created_at: int
    updated_at: int

    # `metadata` is taken by SQLModel itself.
    group_metadata: str = Field(
        default="{}", sa_column=Column("metadata", Text, nullable=False)
    )

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.id,
            name=self.name,
            description=self.description,
            created_by=self.created_by,
            updated_by=self.updated_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
            metadata=decode_metadata(self.group_metadata),
        )
