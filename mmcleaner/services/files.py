from __future__ import annotations

import logging
import os
from pathlib import Path

from mmcleaner.core.errors import FileRemovalError
from mmcleaner.core.logs import TRACE
from mmcleaner.domain.records import FileRecord, RemovalResult


logger = logging.getLogger(__name__)


def resolve_under(base_dir: Path, relative: str) -> Path | None:
    # Resolve lexically so symlinked data dirs keep working; None when the path escapes base_dir.
    base = Path(os.path.normpath(base_dir))
    candidate = Path(os.path.normpath(base / relative))
    if candidate == base or not candidate.is_relative_to(base):
        return None
    return candidate


def split_paths(base_dir: str | Path, record: FileRecord) -> tuple[list[Path], list[str]]:
    # Paths the sweep may touch, and the stored values it refuses.
    accepted: list[Path] = []
    refused: list[str] = []
    for relative in record.file_paths():
        full_path = resolve_under(Path(base_dir), relative)
        if full_path is None:
            refused.append(relative)
        else:
            accepted.append(full_path)
    return accepted, refused


def remove_files(
    base_dir: str | Path, record: FileRecord, *, log: logging.Logger | None = None
) -> RemovalResult:
    """Delete the primary, thumbnail and preview files of one fileinfo row.

    Empty paths are skipped and files that are already gone count as missing,
    so a second pass over the same rows is a no-op. Failing to delete a file
    that exists raises FileRemovalError and stops the caller's sweep.
    """
    log = log or logger
    removed = missing = 0
    accepted, refused = split_paths(base_dir, record)
    for relative in refused:
        log.warning("Refusing to delete path outside data directory: %r", relative)
    for full_path in accepted:
        if not full_path.exists():
            log.log(TRACE, "Path does not exist: %s", full_path)
            missing += 1
            continue
        try:
            full_path.unlink()
        except FileNotFoundError:
            # Removed by someone else between the existence check and unlink.
            log.log(TRACE, "Path does not exist: %s", full_path)
            missing += 1
            continue
        except OSError as exc:
            raise FileRemovalError(full_path) from exc
        log.log(TRACE, "Removed: %s", full_path)
        removed += 1

    if removed:
        log.info("Deleted: %d files. Main file: %s", removed, record.path)
    else:
        log.log(TRACE, "No files to be deleted")
    return RemovalResult(removed=removed, missing=missing, rejected=len(refused))
