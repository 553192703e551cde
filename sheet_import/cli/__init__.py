"""Command line interface (python -m sheet_import.cli)."""
