from __future__ import annotations

from pathlib import Path
from typing import Iterable


class CleanerError(Exception):
    """Base error for mmcleaner."""


class InvalidInputError(CleanerError):
    """Missing or invalid run configuration, detected before any I/O."""

    def __init__(self, message: str = "Invalid input parameters", fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.fields = tuple(fields)

    def __str__(self) -> str:
        if not self.fields:
            return self.message
        return f"{self.message}: {', '.join(self.fields)}"


class StorageConnectionError(CleanerError):
    """Database connection could not be established."""


class QueryError(CleanerError):
    """A fetch or delete statement failed."""


class FileRemovalError(CleanerError):
    """An existing file could not be deleted."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Failed to delete file: {path}")
        self.path = path
