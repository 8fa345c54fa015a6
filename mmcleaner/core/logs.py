from __future__ import annotations

import logging

from mmcleaner.core.errors import InvalidInputError


# Below DEBUG; carries SQL text, parameters and per-file decisions.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name == "TRACE":
        return TRACE
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise InvalidInputError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: str | int = "INFO") -> None:
    # Install one root handler for CLI runs; force replaces handlers left by earlier calls.
    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT, force=True)
