from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from mmcleaner.core.config import SweepPagination
from mmcleaner.core.errors import QueryError
from mmcleaner.core.logs import TRACE
from mmcleaner.domain.records import FileRecord, SweepReport
from mmcleaner.persistence.repos import fileinfo as fileinfo_repo
from mmcleaner.services.files import remove_files, split_paths


logger = logging.getLogger(__name__)


async def _fetch_batch(
    conn: AsyncConnection,
    *,
    cutoff_ms: int,
    batch_size: int,
    pagination: SweepPagination,
    batch_index: int,
    after_id: str | None,
    log: logging.Logger,
) -> list[FileRecord]:
    try:
        if pagination == "keyset":
            log.log(TRACE, "Fetching fileinfo batch: createat<%d after_id=%s limit=%d", cutoff_ms, after_id, batch_size)
            return await fileinfo_repo.fetch_batch_after_id(conn, cutoff_ms, after_id, batch_size)
        offset = batch_index * batch_size
        log.log(TRACE, "Fetching fileinfo batch: createat<%d offset=%d limit=%d", cutoff_ms, offset, batch_size)
        return await fileinfo_repo.fetch_batch_by_offset(conn, cutoff_ms, offset, batch_size)
    except SQLAlchemyError as exc:
        raise QueryError("Failed to fetch fileinfo rows") from exc


async def sweep_files(
    conn: AsyncConnection,
    *,
    cutoff_ms: int,
    data_dir: str | Path,
    batch_size: int,
    dry_run: bool,
    pagination: SweepPagination = "offset",
    log: logging.Logger | None = None,
) -> SweepReport:
    """Delete the files of every fileinfo row older than the cutoff, page by page.

    Rows are left in place; the metadata purge runs afterwards with the same
    cutoff. In offset mode pages are only stable while nothing else inserts
    or deletes fileinfo rows, otherwise rows can be skipped or repeated.
    Keyset mode walks the primary key instead and is not affected. Dry-run
    walks exactly the same pages and only reports.
    """
    log = log or logger
    batches = rows = candidates = 0
    removed = missing = rejected = 0
    batch_index = 0
    after_id: str | None = None

    while True:
        records = await _fetch_batch(
            conn,
            cutoff_ms=cutoff_ms,
            batch_size=batch_size,
            pagination=pagination,
            batch_index=batch_index,
            after_id=after_id,
            log=log,
        )
        batches += 1
        for record in records:
            rows += 1
            accepted, refused = split_paths(data_dir, record)
            candidates += len(accepted)
            if dry_run:
                log.info(
                    "[DRY RUN] Would remove: %r, %r, %r",
                    record.path,
                    record.thumbnail_path,
                    record.preview_path,
                )
                for relative in refused:
                    log.warning("[DRY RUN] Would refuse path outside data directory: %r", relative)
                rejected += len(refused)
                continue
            # Blocking filesystem calls stay off the loop that drives the connection.
            result = await asyncio.to_thread(remove_files, data_dir, record, log=log)
            removed += result.removed
            missing += result.missing
            rejected += result.rejected
        # A short page means the matching set is exhausted.
        if len(records) < batch_size:
            break
        batch_index += 1
        after_id = records[-1].id

    log.info("File sweep finished: batches=%d rows=%d files_removed=%d files_missing=%d", batches, rows, removed, missing)
    return SweepReport(
        batches=batches,
        rows=rows,
        candidate_files=candidates,
        files_removed=removed,
        files_missing=missing,
        files_rejected=rejected,
        dry_run=dry_run,
    )
