"""Structured logging for the translator.

Log records carry the translation phase and the logical ID being converted
when they are known, in both the text and the JSON output formats.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from types import TracebackType
from typing import Any, Literal

PACKAGE_LOGGER = "sam_translate"

phase_var: ContextVar[str | None] = ContextVar("phase", default=None)
logical_id_var: ContextVar[str | None] = ContextVar("logical_id", default=None)

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "processName",
        "process",
        "threadName",
        "thread",
        "taskName",
        "message",
        "asctime",
        "relativeCreated",
        "phase",
        "logical_id",
    }
)


class StructuredFormatter(logging.Formatter):
    """Formatter producing either plain text or one JSON object per line."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        json_format: bool = False,
    ) -> None:
        super().__init__(fmt, datefmt, style)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        record.phase = phase_var.get()
        record.logical_id = logical_id_var.get()
        if self.json_format:
            return self._format_json(record)
        return self._format_text(record)

    def _format_json(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("phase", "logical_id"):
            value = getattr(record, key, None)
            if value:
                log_data[key] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value
        return json.dumps(log_data, default=str)

    def _format_text(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)
        context = [
            f"{key}={value}"
            for key in ("phase", "logical_id")
            if (value := getattr(record, key, None))
        ]
        if context:
            return f"{base_msg} [{', '.join(context)}]"
        return base_msg


def configure_logging(level: str = "WARNING", json_format: bool = False) -> None:
    """Install a structured handler on the package logger.

    Log output goes to stderr so that a template written to stdout stays clean.

    Args:
    ----
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit JSON lines instead of text.

    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    if json_format:
        formatter = StructuredFormatter(json_format=True)
    else:
        formatter = StructuredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(numeric_level)
    package_logger.propagate = False


class LogContext:
    """Temporarily set the phase and/or logical ID attached to log records.

    Example:
    -------
        >>> with LogContext(phase="convert", logical_id="MyFunction"):
        ...     logger.debug("converting")

    """

    def __init__(self, phase: str | None = None, logical_id: str | None = None) -> None:
        self.phase = phase
        self.logical_id = logical_id
        self._tokens: list[Any] = []

    def __enter__(self) -> LogContext:
        if self.phase is not None:
            self._tokens.append((phase_var, phase_var.set(self.phase)))
        if self.logical_id is not None:
            self._tokens.append((logical_id_var, logical_id_var.set(self.logical_id)))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
