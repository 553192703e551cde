"""Domain models for the spreadsheet import service.

This package contains the domain model classes used throughout the application:
coerced cell values, extracted records, requests, outcomes and configuration.
"""

from .cell_value import NULL, CellKind, CellValue
from .config_models import AppConfig, ImportSettings
from .error_record import ErrorRecord
from .import_outcome import ImportOutcome, RowOutcome
from .import_request import ImportRequest
from .record import Record

__all__ = [
    # Configuration models
    "AppConfig",
    "ImportSettings",
    # Extraction models
    "CellKind",
    "CellValue",
    "NULL",
    "Record",
    # Processing models
    "ImportRequest",
    "ImportOutcome",
    "RowOutcome",
    "ErrorRecord",
]
