from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from mmcleaner.core.config import RetentionConfig
from mmcleaner.core.errors import QueryError
from mmcleaner.core.logs import TRACE
from mmcleaner.domain.records import CleanupReport
from mmcleaner.persistence.db import connect
from mmcleaner.persistence.repos import fileinfo as fileinfo_repo
from mmcleaner.persistence.repos import posts as posts_repo
from mmcleaner.services.sweep import sweep_files


logger = logging.getLogger(__name__)


def compute_cutoff_ms(retention_days: int, now: datetime | None = None) -> int:
    # One cutoff per run; every phase compares createat against this value.
    current = now or datetime.now(timezone.utc)
    return int((current - timedelta(days=retention_days)).timestamp() * 1000)


async def purge_fileinfo(
    conn: AsyncConnection, cutoff_ms: int, *, dry_run: bool, log: logging.Logger | None = None
) -> int | None:
    log = log or logger
    log.log(TRACE, "Deleting fileinfo rows with createat < %d", cutoff_ms)
    if dry_run:
        log.info("[DRY RUN] Would delete `fileinfo` rows older than %d", cutoff_ms)
        return None
    try:
        deleted = await fileinfo_repo.delete_older_than(conn, cutoff_ms)
        await conn.commit()
    except SQLAlchemyError as exc:
        raise QueryError("Failed to delete `fileinfo` rows") from exc
    log.info("Removed %d fileinfo rows", deleted)
    return deleted


async def purge_posts(
    conn: AsyncConnection, cutoff_ms: int, *, dry_run: bool, log: logging.Logger | None = None
) -> int | None:
    log = log or logger
    log.log(TRACE, "Deleting posts rows with createat < %d", cutoff_ms)
    if dry_run:
        log.info("[DRY RUN] Would delete `posts` rows older than %d", cutoff_ms)
        return None
    try:
        deleted = await posts_repo.delete_older_than(conn, cutoff_ms)
        await conn.commit()
    except SQLAlchemyError as exc:
        raise QueryError("Failed to delete `posts` rows") from exc
    log.info("Removed %d post rows", deleted)
    return deleted


async def run_cleanup(
    config: RetentionConfig, *, now: datetime | None = None, log: logging.Logger | None = None
) -> CleanupReport:
    """Run the file sweep, the fileinfo purge and, when enabled, the posts purge.

    Validation happens before any I/O. Phases run in order on one connection
    and the first error aborts the rest; nothing already deleted is restored.
    """
    log = log or logger
    config.validate()
    async with connect(config, log=log) as conn:
        cutoff_ms = compute_cutoff_ms(config.retention_days, now)
        log.info("Retention cutoff: createat < %d (%d days)", cutoff_ms, config.retention_days)
        sweep = await sweep_files(
            conn,
            cutoff_ms=cutoff_ms,
            data_dir=config.data_dir,
            batch_size=config.file_batch_size,
            dry_run=config.dry_run,
            pagination=config.sweep_pagination,
            log=log,
        )
        fileinfo_deleted = await purge_fileinfo(conn, cutoff_ms, dry_run=config.dry_run, log=log)
        posts_deleted: int | None = None
        if config.remove_posts:
            posts_deleted = await purge_posts(conn, cutoff_ms, dry_run=config.dry_run, log=log)
        else:
            log.info("Skipping posts removal")
    return CleanupReport(
        cutoff_ms=cutoff_ms,
        sweep=sweep,
        fileinfo_rows_deleted=fileinfo_deleted,
        posts_rows_deleted=posts_deleted,
        dry_run=config.dry_run,
    )
