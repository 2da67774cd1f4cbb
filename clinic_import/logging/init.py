from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logging for clinic_import.

Every line carries one of the labels INFO | WARN | ERROR | SUMMARY (DEBUG when
--debug is on), so CLI output stays grep-able and the final SUMMARY line can be
parsed by scripts.

Modules log through ``logging.getLogger(__name__)``. All of them live below
``clinic_import``, so their records propagate to the one handler installed
here. DEBUG lines are tagged with the emitting module (``[services.executor]``)
to tell the staging, store and executor layers apart.
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

LOGGER_NAME = "clinic_import"
SUMMARY_LEVEL = 25  # entre INFO y WARNING

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; DEBUG records also name their source module."""

    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        text = record.getMessage()
        if record.levelno == logging.DEBUG and record.name.startswith(LOGGER_NAME + "."):
            text = f"[{record.name[len(LOGGER_NAME) + 1:]}] {text}"
        return f"{label} {text}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Install the labeled stdout handler on the ``clinic_import`` logger.

    Calling it again returns the already configured logger untouched; use
    ``reset_logging`` first to rebind (tests swap sys.stdout between runs).
    """
    global _app_logger
    if _app_logger is not None:
        return _app_logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    app = logging.getLogger(LOGGER_NAME)
    app.setLevel(level)
    for old in list(app.handlers):
        app.removeHandler(old)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    app.addHandler(handler)
    # no duplicar líneas en el root logger
    app.propagate = False

    _app_logger = app
    return app


def get_logger() -> logging.Logger:
    return _app_logger if _app_logger is not None else setup_logging()


def set_debug(logger: logging.Logger) -> None:
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (the handler is replaced on next setup)."""
    global _app_logger
    _app_logger = None
