from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for the import CLI.

One `client_import` logger writes "<LABEL> <message>" lines to stdout; the
labels are INFO, WARN, ERROR and SUMMARY (a custom level between INFO and
WARNING). Modules log through logging.getLogger(__name__) and propagate here.
Per-row diagnostics are not printed: they go to the JSON Lines error log
(client_import.logging.error_log).
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "client_import"
SUMMARY_LEVEL = 25

LEVEL_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """"<LABEL> <message>", followed by the traceback when one is attached."""

    def format(self, record: logging.LogRecord) -> str:
        label = LEVEL_LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _console_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the `client_import` logger once; later calls only change the level.

    stream defaults to the sys.stdout of the first call (the SUMMARY line is
    part of the CLI's stdout contract).
    """
    global _configured

    level = logging.DEBUG if debug else logging.INFO
    if _configured is not None:
        _configured.setLevel(level)
        for handler in _configured.handlers:
            handler.setLevel(level)
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
    logger.addHandler(_console_handler(stream or sys.stdout, level))
    logger.setLevel(level)
    # root handlers (pytest, host apps) would print every line twice
    logger.propagate = False

    _configured = logger
    return logger


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() rebinds stdout (tests)."""
    global _configured
    if _configured is not None:
        for handler in list(_configured.handlers):
            _configured.removeHandler(handler)
    _configured = None
