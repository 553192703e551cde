from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config.loader import ConfigError, load_app_config, load_env_file
from ..errors import SheetImportError
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import AppConfig
from ..models.import_request import ImportRequest
from ..services.orchestrator import inspect_upload, process_files
from ..services.summary import render_summary_line

"""CLI entrypoint.

    python -m sheet_import.cli FILE [FILE ...] [--table T] [--database D]
        [--truncate] [--no-headers] [--sheet S] [--config PATH] [--debug]
        [--inspect-data]

Each file is imported in its own transaction. Exit codes:
    0  every file imported (skipped rows do not count as failure)
    2  at least one file failed
    1  fatal (bad config / arguments)
"""

__all__ = [
    "EXIT_SUCCESS_ALL",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_FATAL",
    "main",
]

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheet-import", description="Spreadsheet -> PostgreSQL importer")
    p.add_argument("files", nargs="+", type=Path, help="Excel/CSV files to import")
    p.add_argument("--table", help="Target table (default: detected from file name)")
    p.add_argument("--database", help="Logical database name (default: detected from file name)")
    p.add_argument(
        "--truncate",
        action="store_true",
        default=None,
        help="Empty the target table before inserting",
    )
    p.add_argument(
        "--no-headers", dest="has_headers", action="store_false", default=None, help="First row is data"
    )
    p.add_argument("--sheet", help="Worksheet name (default: first sheet)")
    p.add_argument("--config", type=Path, help="Config file (default: config/import.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print detected target, columns and sample values then exit (no database access)",
    )
    return p.parse_args(argv)


def _inspect_data(paths: list[Path], request: ImportRequest, config: AppConfig, logger: logging.Logger) -> int:
    exit_code = EXIT_SUCCESS_ALL
    for path in paths:
        print(f"FILE: {path.name}")
        try:
            report = inspect_upload(path.read_bytes(), request.for_file(path.name), config)
        except (OSError, SheetImportError) as e:
            logger.error("inspect: %s: %s", path.name, e)
            exit_code = EXIT_PARTIAL_FAILURE
            continue
        print(f"  target: {report.suggested_database}.{report.suggested_table}")
        print(f"  SHEET: {report.sheet_name} rows={report.row_count} cols={report.column_count}")
        for column in report.columns:
            nulls = " nulls" if column.has_nulls else ""
            print(f"    {column.name}: {column.kind.value}{nulls} sample={column.sample_value!r}")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときだけ sys.argv を読む (テストから main([...]) で呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug()

    load_env_file(Path(".env"), override=True)
    try:
        config = load_app_config(args.config)
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    request = ImportRequest(
        file_name="",
        table_name=args.table,
        database=args.database,
        has_headers=config.settings.has_headers if args.has_headers is None else args.has_headers,
        truncate=args.truncate,
        sheet_name=args.sheet,
    )

    if args.inspect_data:
        return _inspect_data(args.files, request, config, logger)

    logger.info("Processing %d file(s)", len(args.files))
    result = process_files(args.files, request, config)

    total_files = result.success_files + result.failed_files
    summary_line = render_summary_line(total_files, result)
    # log_summary が "SUMMARY " を付けるので本文だけ渡す
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
