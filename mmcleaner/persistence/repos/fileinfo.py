from __future__ import annotations

from typing import Any

from sqlalchemy import Delete, Select, delete, select
from sqlalchemy.ext.asyncio import AsyncConnection

from mmcleaner.domain.models import FileInfo
from mmcleaner.domain.records import FileRecord


def _batch_select() -> Select:
    return select(FileInfo.id, FileInfo.path, FileInfo.thumbnailpath, FileInfo.previewpath)


def offset_batch_statement(cutoff_ms: int, offset: int, limit: int) -> Select:
    # No ORDER BY: pages follow the table's natural order, which holds only while no rows are removed.
    return _batch_select().where(FileInfo.createat < cutoff_ms).offset(offset).limit(limit)


def keyset_batch_statement(cutoff_ms: int, after_id: str | None, limit: int) -> Select:
    stmt = _batch_select().where(FileInfo.createat < cutoff_ms)
    if after_id is not None:
        stmt = stmt.where(FileInfo.id > after_id)
    return stmt.order_by(FileInfo.id.asc()).limit(limit)


def purge_statement(cutoff_ms: int) -> Delete:
    return delete(FileInfo).where(FileInfo.createat < cutoff_ms)


def _to_record(row: Any) -> FileRecord:
    return FileRecord(
        id=str(row.id),
        path=row.path or "",
        thumbnail_path=row.thumbnailpath or "",
        preview_path=row.previewpath or "",
    )


async def fetch_batch_by_offset(
    conn: AsyncConnection, cutoff_ms: int, offset: int, limit: int
) -> list[FileRecord]:
    result = await conn.execute(offset_batch_statement(cutoff_ms, offset, limit))
    return [_to_record(row) for row in result.all()]


async def fetch_batch_after_id(
    conn: AsyncConnection, cutoff_ms: int, after_id: str | None, limit: int
) -> list[FileRecord]:
    result = await conn.execute(keyset_batch_statement(cutoff_ms, after_id, limit))
    return [_to_record(row) for row in result.all()]


async def delete_older_than(conn: AsyncConnection, cutoff_ms: int) -> int:
    result = await conn.execute(purge_statement(cutoff_ms))
    return int(result.rowcount or 0)
