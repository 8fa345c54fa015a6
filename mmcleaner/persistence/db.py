from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncIterator

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.pool import NullPool

from mmcleaner.core.config import DATABASE_DRIVER, RetentionConfig, Settings, get_settings
from mmcleaner.core.errors import StorageConnectionError
from mmcleaner.core.logs import TRACE


logger = logging.getLogger(__name__)


def build_database_url(config: RetentionConfig) -> URL:
    if config.database_url:
        return make_url(config.database_url)
    return URL.create(
        DATABASE_DRIVER,
        username=config.db_user,
        password=config.db_password or None,
        host=config.db_host,
        port=int(config.db_port) if config.db_port else None,
        database=config.db_name,
    )


def _engine_kwargs(url: URL, settings: Settings) -> dict[str, Any]:
    # One connection for the whole run, so no pool is kept around.
    kwargs: dict[str, Any] = {"poolclass": NullPool}
    if url.drivername == DATABASE_DRIVER:
        connect_args: dict[str, Any] = {"timeout": max(1, int(settings.db_connect_timeout_s))}
        if settings.db_statement_timeout_ms > 0:
            connect_args["server_settings"] = {"statement_timeout": str(int(settings.db_statement_timeout_ms))}
        kwargs["connect_args"] = connect_args
    return kwargs


@asynccontextmanager
async def connect(
    config: RetentionConfig, *, log: logging.Logger | None = None
) -> AsyncIterator[AsyncConnection]:
    """Open the single storage connection used by every cleanup phase.

    asyncpg drives its own protocol I/O on the running loop, so there is no
    separate pump to supervise: a broken connection shows up as an error on
    the next statement. The engine is disposed when the block exits, whether
    or not the run succeeded.
    """
    log = log or logger
    url = build_database_url(config)
    log.log(TRACE, "Connection string: %s", url.render_as_string(hide_password=True))
    engine = create_async_engine(url, **_engine_kwargs(url, get_settings()))
    try:
        try:
            conn = await engine.connect()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            raise StorageConnectionError("Failed to connect to the database") from exc
        log.info("Connection established: OK")
        try:
            yield conn
        finally:
            await conn.close()
    finally:
        await engine.dispose()
