"""
Secret ORM. Secrets are owned elsewhere; the group directory only needs
their identifiers to resolve access grants.
"""

from sqlmodel import Field, SQLModel


class Secret(SQLModel, table=True):
    __tablename__ = "secrets"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
