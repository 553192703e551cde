from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..db.connection import ConnectionRegistry, Connector, mask_dsn, open_connection
from ..db.loader import LoadOptions, load_records
from ..errors import InvalidInputError, SheetImportError
from ..excel.profile import ColumnProfile, describe_columns
from ..excel.reader import WorksheetData, read_records
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import AppConfig, ImportSettings
from ..models.error_record import FILE_LEVEL_SHEET
from ..models.excel_file import ExcelFile, FileStatus
from ..models.import_outcome import ImportReport
from ..models.import_request import ImportRequest
from ..models.processing_result import FileStat, ProcessingResult
from .naming import resolve_targets
from .progress import ProgressTracker

"""Service orchestration for spreadsheet imports.

run_import is the single-file pipeline shared by the HTTP API and the CLI:

    validate upload -> extract records -> resolve DSN -> connect -> load -> commit

Fatal failures are written to the error log and re-raised; row failures are
written to the error log and returned in the report. process_files runs
run_import over local files for the CLI, one transaction per file.
"""

__all__ = [
    "DetectionReport",
    "validate_upload",
    "extract_upload",
    "inspect_upload",
    "run_import",
    "process_files",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionReport:
    """Dry-run description of an upload (no database access)."""
    file_name: str
    suggested_database: str
    suggested_table: str
    sheet_name: str
    row_count: int  # non-blank data rows
    column_count: int
    columns: list[ColumnProfile]


def validate_upload(file_name: str | None, size: int, settings: ImportSettings) -> None:
    """Reject missing, empty, oversized or wrongly typed uploads.

    Raises:
        InvalidInputError
    """
    if not file_name or size <= 0:
        raise InvalidInputError("No file uploaded")
    if not settings.is_allowed(file_name):
        allowed = ", ".join(settings.allowed_extensions)
        raise InvalidInputError(f"file type not allowed: '{file_name}' (allowed: {allowed})")
    if size > settings.max_file_size:
        raise InvalidInputError(
            f"file too large: {size} bytes (max {settings.max_file_size} bytes)"
        )


def extract_upload(content: bytes, request: ImportRequest, settings: ImportSettings) -> WorksheetData:
    """Read the requested worksheet of an already validated upload."""
    data = read_records(
        content,
        request.file_name,
        has_headers=request.has_headers,
        sheet_name=request.sheet_name,
        null_sentinels=settings.null_sentinels,
    )
    logger.info(
        "extracted %d rows, %d columns from worksheet '%s'",
        data.total_rows,
        len(data.columns),
        data.sheet_name,
    )
    return data


def inspect_upload(content: bytes, request: ImportRequest, config: AppConfig) -> DetectionReport:
    validate_upload(request.file_name, len(content), config.settings)
    table, database = resolve_targets(request.file_name, request.table_name, request.database, config)
    data = extract_upload(content, request, config.settings)
    return DetectionReport(
        file_name=request.file_name,
        suggested_database=database,
        suggested_table=table,
        sheet_name=data.sheet_name,
        row_count=data.total_rows,
        column_count=len(data.columns),
        columns=describe_columns(data),
    )


def _flush(error_log: ErrorLogBuffer) -> Path | None:
    try:
        return error_log.flush()
    except OSError as e:
        # error log はベストエフォート (import 結果は変えない)
        logger.warning("failed to write error log: %s", e)
        return None


def run_import(
    content: bytes,
    request: ImportRequest,
    config: AppConfig,
    connect: Connector | None = None,
    registry: ConnectionRegistry | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportReport:
    """Import one uploaded spreadsheet into its target table.

    Args:
        content: raw file bytes
        request: file name, optional table/database and per-request flags
        config: service configuration
        connect: psycopg2.connect compatible factory (None = psycopg2.connect)
        registry: connection string lookup (None = built from config)
        error_log: buffer for JSON Lines error records (None = new buffer)

    Returns:
        ImportReport (transaction committed; may contain skipped rows)

    Raises:
        SheetImportError subclasses for every fatal failure
    """
    started = datetime.now(UTC)
    settings = config.settings
    error_log = error_log if error_log is not None else ErrorLogBuffer(config.error_log_dir)
    registry = registry or ConnectionRegistry(config.databases, config.default_database)

    table, database = resolve_targets(request.file_name or "", request.table_name, request.database, config)
    request = request.with_targets(table, database)
    truncate = settings.truncate_on_import if request.truncate is None else request.truncate
    sheet = FILE_LEVEL_SHEET

    logger.info("=== starting import ===")
    logger.info("file=%s size=%d bytes", request.file_name, len(content))
    logger.info("table=%s database=%s truncate=%s", table, database, truncate)

    try:
        validate_upload(request.file_name, len(content), settings)
        if not table:
            raise InvalidInputError("Table name is required")
        if not database:
            raise InvalidInputError("Target database is required")

        data = extract_upload(content, request, settings)
        sheet = data.sheet_name

        dsn = registry.resolve(database)
        logger.info("using connection string for %s: %s", database, mask_dsn(dsn))
        options = LoadOptions(
            truncate=truncate,
            fail_if_table_missing=settings.fail_if_table_missing,
            batch_size=settings.batch_size,
            progress_interval=settings.progress_interval,
        )
        with open_connection(dsn, settings.command_timeout, connect=connect) as conn:
            logger.info("connected to database: %s", database)
            outcome = load_records(conn, table, data.columns, data.records, options)
    except SheetImportError as e:
        error_log.append(
            ErrorRecord.for_file(request.file_name or "", e.error_type, str(e), table=table, sheet=sheet)
        )
        _flush(error_log)
        logger.error("!!! import failed !!! file=%s: %s", request.file_name, e)
        raise

    error_log.add_row_failures(request.file_name, sheet, table, outcome.failures)
    log_path = _flush(error_log)

    elapsed = (datetime.now(UTC) - started).total_seconds()
    logger.info("=== import completed ===")
    logger.info(
        "records imported: %d/%d skipped: %d",
        outcome.inserted_rows,
        outcome.total_rows,
        outcome.skipped_rows,
    )
    logger.info("time taken: %.2f seconds", elapsed)
    return ImportReport(
        file_name=request.file_name,
        sheet_name=sheet,
        table=table,
        database=database,
        outcome=outcome,
        elapsed_seconds=elapsed,
        error_log_path=log_path,
    )


def _process_single_file(
    path: Path,
    request: ImportRequest,
    config: AppConfig,
    connect: Connector | None,
    registry: ConnectionRegistry,
    error_log: ErrorLogBuffer,
) -> ExcelFile:
    start_time = datetime.now(UTC)
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.error("cannot read %s: %s", path, e)
        error_log.append(ErrorRecord.for_file(path.name, "FILE_READ_ERROR", str(e)))
        _flush(error_log)
        return ExcelFile(
            path=path,
            name=path.name,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.FAILED,
            error=str(e),
        )

    try:
        report = run_import(
            content,
            request.for_file(path.name),
            config,
            connect=connect,
            registry=registry,
            error_log=error_log,
        )
    except SheetImportError as e:
        return ExcelFile(
            path=path,
            name=path.name,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.FAILED,
            error=str(e),
        )

    return ExcelFile(
        path=path,
        name=path.name,
        table=report.table,
        database=report.database,
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.SUCCESS,
        outcome=report.outcome,
    )


def process_files(
    paths: Sequence[Path],
    request: ImportRequest,
    config: AppConfig,
    connect: Connector | None = None,
    registry: ConnectionRegistry | None = None,
) -> ProcessingResult:
    """Import every file in order, one transaction per file.

    A failed file is rolled back and reported; processing continues with the
    next file. request supplies the shared table/database/flags; each file's
    name replaces request.file_name.
    """
    start_time = datetime.now(UTC)
    registry = registry or ConnectionRegistry(config.databases, config.default_database)
    error_log = ErrorLogBuffer(config.error_log_dir)

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0
    total_skipped = 0

    with ProgressTracker(len(paths), description="Importing files") as progress:
        for path in paths:
            progress.start(path.name)
            result = _process_single_file(path, request, config, connect, registry, error_log)

            if result.status == FileStatus.SUCCESS:
                success_count += 1
                total_rows += result.inserted_rows
            else:
                failed_count += 1
            outcome = result.outcome
            skipped = outcome.skipped_rows if outcome else 0
            total_skipped += skipped

            progress.finish(result.status == FileStatus.SUCCESS, rows=result.inserted_rows)

            file_stats.append(
                FileStat(
                    file_name=result.name,
                    status=result.status.value,
                    inserted_rows=result.inserted_rows,
                    elapsed_seconds=result.elapsed_seconds,
                    skipped_rows=skipped,
                    table=result.table,
                    database=result.database,
                    error=result.error,
                    total_batches=outcome.total_batches if outcome else 0,
                    avg_batch_seconds=outcome.avg_batch_seconds if outcome else 0.0,
                    p95_batch_seconds=outcome.p95_batch_seconds if outcome else 0.0,
                )
            )

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_inserted_rows=total_rows,
        total_skipped_rows=total_skipped,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )
