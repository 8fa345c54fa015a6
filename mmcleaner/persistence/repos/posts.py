from __future__ import annotations

from sqlalchemy import Delete, delete
from sqlalchemy.ext.asyncio import AsyncConnection

from mmcleaner.domain.models import Post


def purge_statement(cutoff_ms: int) -> Delete:
    return delete(Post).where(Post.createat < cutoff_ms)


async def delete_older_than(conn: AsyncConnection, cutoff_ms: int) -> int:
    result = await conn.execute(purge_statement(cutoff_ms))
    return int(result.rowcount or 0)
