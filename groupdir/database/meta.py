"""
Meta functionality for the database.
"""

from .group import AccessGrant, Group, Membership
from .secret import Secret

ALL_TABLES = (
    Group,
    AccessGrant,
    Membership,
    Secret,
)
