from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from pydantic import ValidationError

from mmcleaner.core.config import RetentionConfig, Settings, get_settings
from mmcleaner.core.errors import CleanerError, InvalidInputError
from mmcleaner.core.logs import configure_logging
from mmcleaner.services.retention import run_cleanup


logger = logging.getLogger("mmcleaner.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    # Flags override environment/.env settings; -h stays help, so host is -H.
    parser = argparse.ArgumentParser(
        prog="mmcleaner",
        description="Cleans old files and database rows based on retention policies",
    )
    parser.add_argument("--data-dir", help="Path to the Mattermost data directory (MATTERMOST_DATA_DIRECTORY)")
    parser.add_argument("-n", "--db-name", help="Database name (PGDATABASE)")
    parser.add_argument("-u", "--db-user", help="Database user (PGUSER)")
    parser.add_argument("-p", "--db-password", help="Database password (PGPASSWORD)")
    parser.add_argument("-H", "--db-host", help="Database host (PGHOST)")
    parser.add_argument("-P", "--db-port", help="Database port (PGPORT)")
    parser.add_argument("--database-url", help="Full SQLAlchemy URL, replaces the individual credentials")
    parser.add_argument("-D", "--retention-days", type=int, help="Number of days to retain data (RETENTION_DAYS)")
    parser.add_argument("-b", "--file-batch-size", type=int, help="Batch size for file deletion (FILE_BATCH_SIZE)")
    parser.add_argument("--pagination", choices=["offset", "keyset"], help="File sweep paging strategy")
    parser.add_argument("--remove-posts", action="store_true", default=None, help="Wipe posts older than the cutoff")
    parser.add_argument(
        "--dry-run", action="store_true", default=None, help="Perform a dry run without making any changes"
    )
    parser.add_argument("--log-level", help="TRACE, DEBUG, INFO, WARNING or ERROR (LOG_LEVEL)")
    return parser


def resolve_config(args: argparse.Namespace, settings: Settings) -> RetentionConfig:
    return RetentionConfig.from_settings(
        settings,
        data_dir=args.data_dir,
        db_name=args.db_name,
        db_user=args.db_user,
        db_password=args.db_password,
        db_host=args.db_host,
        db_port=args.db_port,
        database_url=args.database_url,
        retention_days=args.retention_days,
        file_batch_size=args.file_batch_size,
        sweep_pagination=args.pagination,
        remove_posts=args.remove_posts,
        dry_run=args.dry_run,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging(args.log_level or "INFO")
        logger.error("Cleaning operation failed: invalid settings: %s", exc)
        return EXIT_INVALID_INPUT

    try:
        configure_logging(args.log_level or settings.log_level)
    except InvalidInputError as exc:
        configure_logging("INFO")
        logger.error("Cleaning operation failed: %s", exc)
        return EXIT_INVALID_INPUT

    config = resolve_config(args, settings)
    try:
        report = asyncio.run(run_cleanup(config))
    except InvalidInputError as exc:
        logger.error("Cleaning operation failed: %s", exc)
        return EXIT_INVALID_INPUT
    except CleanerError as exc:
        cause = exc.__cause__
        if cause is not None:
            logger.error("Cleaning operation failed: %s: %s", exc, cause)
        else:
            logger.error("Cleaning operation failed: %s", exc)
        return EXIT_FAILED

    if report.dry_run:
        logger.info("Dry run: %d fileinfo rows visited, %d files would be removed", report.sweep.rows, report.sweep.candidate_files)
    logger.info("Cleaning operation completed successfully.")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
