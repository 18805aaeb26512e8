"""Process-wide logging configuration."""
from __future__ import annotations

import logging
import sys


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - allow taskhub logs at the configured level
    - suppress per-request access lines from uvicorn unless WARNING+
    - suppress Python warnings (captured as 'py.warnings') unless ERROR+
    - any other third-party logger only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name == "taskhub" or name.startswith("taskhub."):
            return True

        if name.startswith("uvicorn.access"):
            return record.levelno >= logging.WARNING

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the root logger with one filtered stderr handler.

    Safe to call more than once; existing root handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)


__all__ = ["setup_logging"]
