# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging setup for the admin MCP server.

Everything is written to ``stderr``: on the stdio transport ``stdout`` carries
JSON-RPC frames and must never see a log line.  Output is colored text by
default, plain text when ``NO_COLOR`` is set, and one JSON object per line when
``HELLOMCP_LOG_JSON`` is truthy.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
import sys
from typing import Any, ClassVar, Final


RESET: Final[str] = "\033[0m"

DEBUG_COLOR: Final[str] = "\033[36m"
INFO_COLOR: Final[str] = "\033[32m"
WARNING_COLOR: Final[str] = "\033[33m"
ERROR_COLOR: Final[str] = "\033[1;31m"
CRITICAL_COLOR: Final[str] = "\033[1;35m"
LOGGER_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "hellomcp"
ENV_LOG_LEVEL: Final[str] = "HELLOMCP_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "HELLOMCP_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]

_BUILTIN_RECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "context"}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and logger name."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": DEBUG_COLOR,
        "INFO": INFO_COLOR,
        "WARNING": WARNING_COLOR,
        "ERROR": ERROR_COLOR,
        "CRITICAL": CRITICAL_COLOR,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        levelname, name = record.levelname, record.name
        record.levelname = f"{color}{levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = levelname, name


class HelloMCPHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """stderr handler installed by :func:`setup_logger`."""

    def __init__(self, stream: Any = None) -> None:
        super().__init__(stream if stream is not None else sys.stderr)


class StructuredJSONFormatter(logging.Formatter):
    """Render records as single-line JSON objects.

    ``extra=`` keys (``event``, ``reason``, ``status`` ...) and any ``context``
    mapping are merged into a ``context`` object on the payload.
    """

    def __init__(self, serializer: JsonSerializer | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _default_json_serializer

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        extra: dict[str, Any] = {}
        context = record.__dict__.get("context")
        if isinstance(context, dict):
            extra.update(context)
        for key, value in record.__dict__.items():
            if key in _BUILTIN_RECORD_KEYS or key in extra:
                continue
            extra[key] = value
        if extra:
            payload["context"] = extra

        return self._serializer(payload)


def _default_json_serializer(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def _has_handler(root: logging.Logger) -> bool:
    return any(isinstance(handler, HelloMCPHandler) for handler in root.handlers)


def _read_bool_env(key: str) -> bool:
    value = os.getenv(key)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL) or os.getenv("LOG_LEVEL")
        if not level:
            return logging.INFO

    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    stream: Any = None,
    force: bool = False,
) -> None:
    """Attach the package handler to the root logger.

    Args:
        level: Log level. Falls back to ``HELLOMCP_LOG_LEVEL``, then
            ``LOG_LEVEL``, then ``INFO``.
        use_json: Emit JSON lines. Defaults to ``HELLOMCP_LOG_JSON``.
        use_color: Color plain-text output. Defaults to on unless ``NO_COLOR``
            is set or JSON output is selected.
        json_serializer: Replacement for ``json.dumps`` in JSON mode.
        fmt: Format string for plain-text output.
        datefmt: Date format for both modes.
        stream: Destination stream, ``sys.stderr`` when omitted.
        force: Replace a previously installed handler.
    """
    root = logging.getLogger()

    if _has_handler(root) and not force:
        return

    for handler in list(root.handlers):
        if isinstance(handler, HelloMCPHandler):
            root.removeHandler(handler)
            handler.close()

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    resolved_use_json = use_json if use_json is not None else _read_bool_env(ENV_LOG_JSON)
    if use_color is not None:
        resolved_use_color = use_color
    elif os.getenv(ENV_NO_COLOR):
        resolved_use_color = False
    else:
        resolved_use_color = not resolved_use_json

    handler = HelloMCPHandler(stream)
    handler.setLevel(resolved_level)

    formatter: logging.Formatter
    if resolved_use_json:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=datefmt)
    elif resolved_use_color:
        formatter = ColoredFormatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)
    else:
        formatter = logging.Formatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)

    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a package logger, installing the default handler on first use."""
    if not _has_handler(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "HelloMCPHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
