from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from mmcleaner.core.errors import InvalidInputError


SweepPagination = Literal["offset", "keyset"]

# Only the asyncpg driver is installed alongside the async engine.
DATABASE_DRIVER = "postgresql+asyncpg"


def _env(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "mmcleaner"
    log_level: str = "INFO"

    # Root of the on-disk file store; fileinfo paths are relative to it.
    data_dir: str = Field(default="", validation_alias=_env("MATTERMOST_DATA_DIRECTORY", "DATA_DIR"))
    # Standard libpq variable names so the tool runs next to psql without extra setup.
    db_name: str = Field(default="", validation_alias=_env("PGDATABASE", "DB_NAME"))
    db_user: str = Field(default="", validation_alias=_env("PGUSER", "DB_USER"))
    db_password: str = Field(default="", validation_alias=_env("PGPASSWORD", "DB_PASSWORD"))
    db_host: str = Field(default="", validation_alias=_env("PGHOST", "DB_HOST"))
    db_port: str = Field(default="", validation_alias=_env("PGPORT", "DB_PORT"))
    # Full SQLAlchemy URL; when set it replaces the individual credentials above.
    database_url: str | None = None

    retention_days: int = 0
    file_batch_size: int = 0
    remove_posts: bool = False
    dry_run: bool = False
    # Offset paging reproduces the legacy sweep; keyset paging tolerates concurrent writers.
    sweep_pagination: SweepPagination = "offset"

    # Storage client timeouts; no retries are attempted on top of these.
    db_connect_timeout_s: int = 30
    db_statement_timeout_ms: int = 0


def _is_supported_url(raw: str) -> bool:
    try:
        url = make_url(raw)
    except (ArgumentError, ValueError):
        return False
    return url.drivername == DATABASE_DRIVER


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class RetentionConfig:
    data_dir: str
    db_name: str
    db_user: str
    db_password: str
    db_host: str
    db_port: str
    retention_days: int
    file_batch_size: int
    remove_posts: bool = False
    dry_run: bool = False
    database_url: str | None = None
    sweep_pagination: SweepPagination = "offset"

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> RetentionConfig:
        # Explicit overrides (CLI flags) win; None means "not given".
        values: dict[str, Any] = {
            "data_dir": settings.data_dir,
            "db_name": settings.db_name,
            "db_user": settings.db_user,
            "db_password": settings.db_password,
            "db_host": settings.db_host,
            "db_port": settings.db_port,
            "retention_days": settings.retention_days,
            "file_batch_size": settings.file_batch_size,
            "remove_posts": settings.remove_posts,
            "dry_run": settings.dry_run,
            "database_url": settings.database_url,
            "sweep_pagination": settings.sweep_pagination,
        }
        for key, value in overrides.items():
            if key not in values:
                raise TypeError(f"unknown retention config field: {key}")
            if value is not None:
                values[key] = value
        return cls(**values)

    def invalid_fields(self) -> list[str]:
        invalid: list[str] = []
        if not self.data_dir:
            invalid.append("data_dir")
        if self.database_url:
            if not _is_supported_url(self.database_url):
                invalid.append("database_url")
        else:
            # Password may legitimately be empty (trust or peer auth).
            for name in ("db_name", "db_user", "db_host"):
                if not getattr(self, name):
                    invalid.append(name)
            if self.db_port and not (self.db_port.isascii() and self.db_port.isdigit()):
                invalid.append("db_port")
        if self.retention_days <= 0:
            invalid.append("retention_days")
        if self.file_batch_size <= 0:
            invalid.append("file_batch_size")
        if self.sweep_pagination not in ("offset", "keyset"):
            invalid.append("sweep_pagination")
        return invalid

    def validate(self) -> None:
        invalid = self.invalid_fields()
        if invalid:
            raise InvalidInputError(fields=invalid)
