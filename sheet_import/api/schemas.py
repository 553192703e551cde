from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

"""Response models for the import API."""

__all__ = [
    "ImportResponse",
    "DetectedColumn",
    "DetectionResponse",
    "DatabaseInfo",
    "DatabaseListResponse",
]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ImportResponse(BaseModel):
    success: bool
    message: str = ""
    total_records: int = 0
    records_imported: int = 0
    records_skipped: int = 0
    target_database: str | None = None
    target_table: str | None = None
    imported_file_name: str | None = None
    sheet_name: str | None = None
    import_timestamp: datetime = Field(default_factory=_utcnow)
    processing_time_seconds: float = 0.0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DetectedColumn(BaseModel):
    name: str
    data_type: str
    has_null_values: bool
    sample_value: str | None = None
    max_length: int = 0


class DetectionResponse(BaseModel):
    file_name: str
    suggested_database: str
    suggested_table_name: str
    sheet_name: str
    row_count: int
    column_count: int
    detected_columns: list[DetectedColumn] = Field(default_factory=list)


class DatabaseInfo(BaseModel):
    name: str
    is_default: bool = False


class DatabaseListResponse(BaseModel):
    databases: list[DatabaseInfo]
