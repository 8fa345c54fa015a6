from __future__ import annotations

import dataclasses

import pytest

from mmcleaner.core.config import RetentionConfig, get_settings
from mmcleaner.core.errors import InvalidInputError
from mmcleaner.core.logs import TRACE, resolve_level


def _config(**overrides) -> RetentionConfig:  # noqa: ANN003
    values = {
        "data_dir": "/data",
        "db_name": "mattermost",
        "db_user": "mmuser",
        "db_password": "secret",
        "db_host": "localhost",
        "db_port": "5432",
        "retention_days": 30,
        "file_batch_size": 100,
    }
    values.update(overrides)
    return RetentionConfig(**values)


def test_valid_config_passes_validation() -> None:
    _config().validate()


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"data_dir": ""}, "data_dir"),
        ({"db_name": ""}, "db_name"),
        ({"db_user": ""}, "db_user"),
        ({"db_host": ""}, "db_host"),
        ({"db_port": "pg"}, "db_port"),
        ({"retention_days": 0}, "retention_days"),
        ({"retention_days": -3}, "retention_days"),
        ({"file_batch_size": 0}, "file_batch_size"),
    ],
)
def test_invalid_config_is_rejected(overrides: dict, field: str) -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        _config(**overrides).validate()
    assert excinfo.value.fields == (field,)
    assert str(excinfo.value).startswith("Invalid input parameters")


def test_empty_password_is_allowed() -> None:
    # Trust/peer auth deployments run without a password.
    _config(db_password="").validate()


def test_database_url_replaces_credentials() -> None:
    config = _config(db_name="", db_user="", db_host="", database_url="postgresql+asyncpg://u@h/db")
    config.validate()


def test_config_is_immutable() -> None:
    config = _config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.retention_days = 1  # type: ignore[misc]


def test_settings_read_legacy_environment_names(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATTERMOST_DATA_DIRECTORY", "/srv/mattermost/data")
    monkeypatch.setenv("PGDATABASE", "mattermost")
    monkeypatch.setenv("PGUSER", "mmuser")
    monkeypatch.setenv("PGPASSWORD", "secret")
    monkeypatch.setenv("PGHOST", "db.internal")
    monkeypatch.setenv("PGPORT", "6432")
    monkeypatch.setenv("RETENTION_DAYS", "90")
    monkeypatch.setenv("FILE_BATCH_SIZE", "500")
    get_settings.cache_clear()

    config = RetentionConfig.from_settings(get_settings())

    assert config.data_dir == "/srv/mattermost/data"
    assert config.db_host == "db.internal"
    assert config.db_port == "6432"
    assert config.retention_days == 90
    assert config.file_batch_size == 500
    assert config.dry_run is False
    assert config.remove_posts is False
    config.validate()


def test_overrides_win_and_none_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETENTION_DAYS", "90")
    monkeypatch.setenv("FILE_BATCH_SIZE", "500")
    get_settings.cache_clear()

    config = RetentionConfig.from_settings(get_settings(), retention_days=7, file_batch_size=None, dry_run=True)

    assert config.retention_days == 7
    assert config.file_batch_size == 500
    assert config.dry_run is True


def test_unknown_override_is_a_programming_error() -> None:
    with pytest.raises(TypeError):
        RetentionConfig.from_settings(get_settings(), retention=7)


def test_resolve_level_understands_trace() -> None:
    assert resolve_level("trace") == TRACE
    assert resolve_level("INFO") == 20
    with pytest.raises(InvalidInputError):
        resolve_level("chatty")


@pytest.mark.parametrize(
    "database_url",
    [
        "not a url",
        # Sync driver; only asyncpg ships with the async engine.
        "postgresql://u:p@localhost/mm",
        "sqlite+aiosqlite:///mm.db",
    ],
)
def test_unusable_database_url_is_rejected(database_url: str) -> None:
    config = _config(db_name="", db_user="", db_host="", database_url=database_url)

    with pytest.raises(InvalidInputError) as excinfo:
        config.validate()

    assert excinfo.value.fields == ("database_url",)


@pytest.mark.parametrize("port", ["²", "٥٤٣٢", "54 32", "-1"])
def test_non_ascii_or_signed_port_is_rejected(port: str) -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        _config(db_port=port).validate()

    assert excinfo.value.fields == ("db_port",)
