from __future__ import annotations

import pytest

from mmcleaner.core.config import get_settings


_SETTINGS_ENV = (
    "MATTERMOST_DATA_DIRECTORY",
    "DATA_DIR",
    "PGDATABASE",
    "DB_NAME",
    "PGUSER",
    "DB_USER",
    "PGPASSWORD",
    "DB_PASSWORD",
    "PGHOST",
    "DB_HOST",
    "PGPORT",
    "DB_PORT",
    "DATABASE_URL",
    "RETENTION_DAYS",
    "FILE_BATCH_SIZE",
    "REMOVE_POSTS",
    "DRY_RUN",
    "SWEEP_PAGINATION",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    # Keep the developer's shell and .env out of settings resolution.
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
