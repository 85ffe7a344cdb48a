"""Fixtures for SQLite storage tests."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import src.infrastructure.storage.sqlite.connection as conn_module
from src.infrastructure.storage.sqlite.connection import close_pool
from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
async def workshop_db(tmp_path: Path):
    """Create a temp database with the workshop schema applied."""
    db_path = tmp_path / "test_workshop.db"
    results = await initialize_database(db_path, create_backup_before=False)
    assert results and all(r.success for r in results)
    yield db_path


@pytest.fixture
async def sqlite_db(workshop_db: Path):
    """Point the global connection pool at the temp database."""
    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = workshop_db
    mock_settings.storage.pool_size = 1
    mock_settings.storage.busy_timeout = 5000
    mock_settings.storage.journal_mode = "WAL"

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield workshop_db
        finally:
            await close_pool()
