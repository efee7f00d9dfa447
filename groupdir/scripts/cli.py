"""
A simple CLI for setting up and inspecting a group directory.
"""

import asyncio
import sys

from groupdir.config.settings import Settings
from groupdir.service.store import GroupStore


async def list_groups(settings: Settings):
    manager = settings.readonly_async_manager()

    try:
        groups = await GroupStore.readonly(manager).list_all()
    finally:
        await manager.dispose()

    for group in sorted(groups, key=lambda g: g.group_id):
        print(f"{group.group_id}\t{group.name}\t{group.description}")


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print("Only supported commands are groupdir setup and groupdir list")
        exit(1)

    settings = Settings()

    if command == "setup":
        settings.sync_manager().create_all()
        print(f"Created group directory tables in {settings.database_db}")
    elif command == "list":
        asyncio.run(list_groups(settings))
    else:
        print(f"Unknown command {command}")
        exit(1)
