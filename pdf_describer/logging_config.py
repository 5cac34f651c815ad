"""Logging for the pdf-describer CLI.

Human-readable lines on stderr by default. With ``PDF_DESCRIBER_LOG_JSON``
set, each record is one JSON object (python-json-logger) carrying the page
number when the pipeline attached one via ``extra={"page": n}``.
"""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from pdf_describer.processing.config import json_logs_enabled

# Chatty libraries: per-request lines from httpx, recoverable-parse noise from pypdf.
_QUIET_LOGGERS = ("httpx", "httpcore", "pypdf")


class PageJsonFormatter(JsonFormatter):
    """JSON lines with ``level``, ``logger`` and, for page-scoped records, ``page``."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "time", "levelname": "level", "name": "logger"},
        )


class PagePrefixFormatter(logging.Formatter):
    """Plain text; page-scoped records get a ``[page n]`` prefix."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        page = getattr(record, "page", None)
        if page is None:
            return line
        head, sep, msg = line.partition(" | ")
        return f"{head}{sep}[page {page}] {msg}"


def setup_logging(*, level: str = "INFO", json_logs: bool | None = None) -> None:
    if json_logs is None:
        json_logs = json_logs_enabled()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(PageJsonFormatter())
    else:
        handler.setFormatter(PagePrefixFormatter("%(asctime)s %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))
