"""Spreadsheet (Excel/CSV) to PostgreSQL import service."""

__version__ = "1.0.0"
