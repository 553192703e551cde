from __future__ import annotations

import argparse
import os

import uvicorn

"""Run the import API with uvicorn.

    python -m sheet_import.api [--host HOST] [--port PORT]
"""


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="sheet-import-api", description="Spreadsheet import HTTP service")
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = p.parse_args(argv)
    uvicorn.run("sheet_import.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":  # pragma: no cover
    main()
