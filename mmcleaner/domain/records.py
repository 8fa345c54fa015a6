from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileRecord:
    # Read-only projection of one fileinfo row; NULL columns arrive as "".
    id: str
    path: str
    thumbnail_path: str
    preview_path: str

    def file_paths(self) -> list[str]:
        return [p for p in (self.path, self.thumbnail_path, self.preview_path) if p]


@dataclass(frozen=True)
class RemovalResult:
    removed: int = 0
    missing: int = 0
    # Paths that would escape the data directory are never touched.
    rejected: int = 0


@dataclass(frozen=True)
class SweepReport:
    batches: int
    rows: int
    candidate_files: int
    files_removed: int
    files_missing: int
    files_rejected: int
    dry_run: bool


@dataclass(frozen=True)
class CleanupReport:
    cutoff_ms: int
    sweep: SweepReport
    # None when the purge was skipped (dry-run or not requested).
    fileinfo_rows_deleted: int | None
    posts_rows_deleted: int | None
    dry_run: bool
