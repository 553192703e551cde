from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Package logging setup.

All modules log through children of the "sheet_import" logger
(logging.getLogger(__name__)); one stdout handler on that logger prints every
line with a level label:

    INFO   === starting import ===
    WARN   error inserting row 12 into Tbl_VariyaLog: ...
    SUMMARY files=3/3 success=3 failed=0 rows=1200 ...

SUMMARY is an extra level (25) used for the one-line CLI result.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "sheet_import"
SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING

_HANDLER_MARK = "_sheet_import_handler"


class LabeledFormatter(logging.Formatter):
    """`<LABEL> <message>` plus the traceback when one is attached."""

    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        text = f"{self.LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _package_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, _HANDLER_MARK, False):
            return handler
    return None


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled stdout handler to the package logger once.

    Later calls return the already configured logger unchanged. Propagation to
    the root logger is turned off so uvicorn's handlers don't repeat each line.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if _package_handler(logger) is not None:
        return logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(level)
    setattr(handler, _HANDLER_MARK, True)

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger() -> logging.Logger:
    """The package logger, configured on first use."""
    return setup_logging()


def set_debug() -> None:
    """Lower the package logger and its handler to DEBUG (--debug)."""
    logger = setup_logging()
    logger.setLevel(logging.DEBUG)
    handler = _package_handler(logger)
    if handler is not None:
        handler.setLevel(logging.DEBUG)
    logger.debug("debug mode enabled")


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the package handler and restore defaults (tests)."""
    logger = logging.getLogger(LOGGER_NAME)
    handler = _package_handler(logger)
    if handler is not None:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
