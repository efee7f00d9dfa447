"""
Core configuration
"""

import pytest

from groupdir.config.settings import Settings


@pytest.fixture
def server_settings(tmp_path):
    yield Settings(
        database_type="sqlite",
        database_db=str(tmp_path / "groupdir.db"),
        database_echo=False,
    )


@pytest.fixture
def database(server_settings: Settings):
    manager = server_settings.sync_manager()
    manager.create_all()
    yield
    manager.drop_all()
    manager.engine.dispose()
