from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from ..config.loader import load_app_config
from ..db.connection import ConnectionRegistry, Connector
from ..errors import InvalidInputError, SheetImportError
from ..logging.init import setup_logging
from ..models.config_models import AppConfig, ImportSettings
from ..models.import_outcome import ImportReport
from ..models.import_request import ImportRequest
from ..services.orchestrator import inspect_upload, run_import, validate_upload
from .schemas import (
    DatabaseInfo,
    DatabaseListResponse,
    DetectedColumn,
    DetectionResponse,
    ImportResponse,
)

"""FastAPI application for spreadsheet uploads.

Endpoints:
    POST /api/import/upload     import one file into one table
    POST /api/import/detect     describe a file without touching the database
    GET  /api/import/databases  configured logical database names
    GET  /health

The endpoints are plain (sync) functions, so FastAPI runs each import in its
thread pool with its own connection.
"""

__all__ = [
    "MAX_WARNINGS",
    "Runtime",
    "get_runtime",
    "create_app",
    "app",
]

logger = logging.getLogger(__name__)

MAX_WARNINGS = 100


@dataclass
class Runtime:
    config: AppConfig
    registry: ConnectionRegistry
    connect: Connector | None = None


def _build_runtime(app: FastAPI) -> Runtime:
    config = app.state.config
    if config is None:
        config = load_app_config()
        app.state.config = config
    registry = app.state.registry or ConnectionRegistry(config.databases, config.default_database)
    return Runtime(config=config, registry=registry, connect=app.state.connect)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    app.state.runtime = _build_runtime(app)
    logger.info("import service ready (default database: %s)", app.state.runtime.registry.default_database)
    yield


def get_runtime(request: Request) -> Runtime:
    runtime: Runtime | None = getattr(request.app.state, "runtime", None)
    if runtime is None:
        # lifespan を通らない起動 (TestClient を with なしで使う場合など)
        runtime = _build_runtime(request.app)
        request.app.state.runtime = runtime
    return runtime


def _read_upload(file: UploadFile | None, settings: ImportSettings) -> bytes:
    """Upload body. A declared size over max_file_size is rejected before reading.

    Raises:
        InvalidInputError
    """
    if file is None:
        return b""
    if file.size is not None:
        validate_upload(file.filename, file.size, settings)
    # 上限 + 1 byte まで読めば超過は validate_upload で検出できる
    return file.file.read(settings.max_file_size + 1)


def _success_response(report: ImportReport) -> ImportResponse:
    outcome = report.outcome
    if outcome.complete:
        message = "File imported successfully"
    else:
        message = f"File imported with {outcome.skipped_rows} skipped row(s)"
    warnings = [f"Row {f.row_number}: {f.message}" for f in outcome.failures[:MAX_WARNINGS]]
    if len(outcome.failures) > MAX_WARNINGS:
        warnings.append(f"... and {len(outcome.failures) - MAX_WARNINGS} more skipped rows")
    return ImportResponse(
        success=True,
        message=message,
        total_records=outcome.total_rows,
        records_imported=outcome.inserted_rows,
        records_skipped=outcome.skipped_rows,
        target_database=report.database,
        target_table=report.table,
        imported_file_name=report.file_name,
        sheet_name=report.sheet_name,
        processing_time_seconds=round(report.elapsed_seconds, 3),
        warnings=warnings,
    )


def _failure_response(
    status_code: int, error: Exception, request: ImportRequest, elapsed: float
) -> JSONResponse:
    body = ImportResponse(
        success=False,
        message=f"Import failed: {error}",
        target_database=request.database,
        target_table=request.table_name,
        imported_file_name=request.file_name or None,
        sheet_name=request.sheet_name,
        processing_time_seconds=round(elapsed, 3),
        errors=[str(error)],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app(
    config: AppConfig | None = None,
    connect: Connector | None = None,
    registry: ConnectionRegistry | None = None,
) -> FastAPI:
    """Build the API.

    config/connect/registry are injectable for tests; a missing config is
    loaded from config/import.yml (or SHEET_IMPORT_CONFIG) at startup.
    """
    api = FastAPI(title="Sheet Import Service", version="1.0.0", lifespan=lifespan)
    api.state.config = config
    api.state.connect = connect
    api.state.registry = registry
    api.state.runtime = None

    @api.get("/health")
    def health() -> dict:
        return {"status": "healthy"}

    @api.get("/api/import/databases", response_model=DatabaseListResponse)
    def list_databases(runtime: Runtime = Depends(get_runtime)) -> DatabaseListResponse:
        default = runtime.registry.default_database
        return DatabaseListResponse(
            databases=[
                DatabaseInfo(name=name, is_default=(name == default))
                for name in runtime.registry.names()
            ]
        )

    @api.post("/api/import/upload", response_model=ImportResponse)
    def upload(
        file: UploadFile | None = File(None),
        table_name: str | None = Form(None),
        target_database: str | None = Form(None),
        has_headers: bool | None = Form(None),
        truncate_table: bool | None = Form(None),
        sheet_name: str | None = Form(None),
        runtime: Runtime = Depends(get_runtime),
    ):
        started = time.perf_counter()
        file_name = file.filename if file is not None else ""
        request = ImportRequest(
            file_name=file_name or "",
            table_name=table_name or None,
            database=target_database or None,
            has_headers=runtime.config.settings.has_headers if has_headers is None else has_headers,
            truncate=truncate_table,
            sheet_name=sheet_name or None,
        )
        try:
            content = _read_upload(file, runtime.config.settings)
            report = run_import(
                content,
                request,
                runtime.config,
                connect=runtime.connect,
                registry=runtime.registry,
            )
        except InvalidInputError as e:
            return _failure_response(400, e, request, time.perf_counter() - started)
        except SheetImportError as e:
            return _failure_response(500, e, request, time.perf_counter() - started)
        except Exception as e:
            logger.exception("unexpected error importing %s", file_name)
            return _failure_response(500, e, request, time.perf_counter() - started)
        return _success_response(report)

    @api.post("/api/import/detect", response_model=DetectionResponse)
    def detect(
        file: UploadFile | None = File(None),
        has_headers: bool | None = Form(None),
        sheet_name: str | None = Form(None),
        runtime: Runtime = Depends(get_runtime),
    ):
        file_name = file.filename if file is not None else ""
        request = ImportRequest(
            file_name=file_name or "",
            has_headers=runtime.config.settings.has_headers if has_headers is None else has_headers,
            sheet_name=sheet_name or None,
        )
        try:
            content = _read_upload(file, runtime.config.settings)
            report = inspect_upload(content, request, runtime.config)
        except InvalidInputError as e:
            return JSONResponse(status_code=400, content={"detail": str(e)})
        except SheetImportError as e:
            return JSONResponse(status_code=500, content={"detail": str(e)})
        return DetectionResponse(
            file_name=report.file_name,
            suggested_database=report.suggested_database,
            suggested_table_name=report.suggested_table,
            sheet_name=report.sheet_name,
            row_count=report.row_count,
            column_count=report.column_count,
            detected_columns=[
                DetectedColumn(
                    name=c.name,
                    data_type=c.kind.value,
                    has_null_values=c.has_nulls,
                    sample_value=c.sample_value,
                    max_length=c.max_length,
                )
                for c in report.columns
            ],
        )

    return api


app = create_app()
