from __future__ import annotations

from dataclasses import dataclass, replace

"""ImportRequest model: what a single upload asks the importer to do.

Table and database may be blank on arrival; the orchestrator fills them in from
the filename before anything touches the database.
"""

__all__ = [
    "ImportRequest",
]


@dataclass(frozen=True)
class ImportRequest:
    file_name: str
    table_name: str | None = None
    database: str | None = None
    has_headers: bool = True
    truncate: bool | None = None  # None -> ImportSettings.truncate_on_import
    sheet_name: str | None = None  # None -> first worksheet

    def with_targets(self, table_name: str, database: str) -> ImportRequest:
        return replace(self, table_name=table_name, database=database)

    def for_file(self, file_name: str) -> ImportRequest:
        return replace(self, file_name=file_name)
