"""Structured logging setup with JSON-lines or text output.

Adapters log through ``structlog``; ``setup_logging`` routes those events into
the stdlib ``devinde_tracker`` logger so that keyword fields end up on each
line next to the event name.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_DEFAULT_LOGGER_NAME: Final[str] = "devinde_tracker"
_TEXT_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s %(message)s"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: LoggingHandle | None = None


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    """Resolved ``[logging]`` section."""

    level: int | str = "INFO"
    format: str = "json"
    file: Path | str | None = None
    logger_name: str = _DEFAULT_LOGGER_NAME
    log_to_stderr: bool = True

    @classmethod
    def from_config(cls, config: Mapping[str, object] | None) -> LoggingSettings:
        """Read settings from a full config or from its ``logging`` section alone."""
        section: Mapping[str, object] = config or {}
        nested = section.get("logging")
        if isinstance(nested, Mapping):
            section = nested
        raw_level = section.get("level", "INFO")
        raw_format = section.get("format", "json")
        raw_file = section.get("file")
        return cls(
            level=raw_level if isinstance(raw_level, (int, str)) else "INFO",
            format=raw_format if isinstance(raw_format, str) else "json",
            file=raw_file if isinstance(raw_file, (str, Path)) else None,
        )


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras
        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """Human-readable lines with structured fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extract_extra_fields(record)
        if not extras:
            return line
        rendered = " ".join(
            f"{key}={json.dumps(value, sort_keys=True, ensure_ascii=False)}"
            for key, value in sorted(extras.items())
        )
        return f"{line} {rendered}"


class LoggingHandle:
    """Runtime handle for an active logging setup."""

    def __init__(self, *, logger: logging.Logger, handlers: tuple[logging.Handler, ...]) -> None:
        self.logger = logger
        self._handlers = handlers
        self._lock = threading.Lock()
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def flush(self) -> None:
        for handler in self._handlers:
            handler.flush()

    def shutdown(self) -> None:
        with self._lock:
            if self._is_shutdown:
                return
            for handler in self._handlers:
                self.logger.removeHandler(handler)
                handler.flush()
                handler.close()
            self._is_shutdown = True


def setup_logging(config: Mapping[str, object] | LoggingSettings | None = None) -> LoggingHandle:
    """Configure the package logger and route ``structlog`` events through it.

    ``config`` is either a loaded config mapping, its ``logging`` section, or
    explicit ``LoggingSettings``. A previously active setup is shut down first.
    """
    settings = config if isinstance(config, LoggingSettings) else LoggingSettings.from_config(config)
    _shutdown_previous_active_handle()

    level = _parse_log_level(settings.level)
    formatter = _build_formatter(settings.format)

    handlers: list[logging.Handler] = []
    if settings.file is not None:
        log_path = Path(settings.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if settings.log_to_stderr:
        handlers.append(logging.StreamHandler())

    logger = logging.getLogger(settings.logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handle = LoggingHandle(logger=logger, handlers=tuple(handlers))
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = handle
    return handle


def shutdown_logging(handle: LoggingHandle | None = None) -> None:
    """Close sinks of ``handle`` (or the active one) and restore structlog defaults."""
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        resolved = handle if handle is not None else _ACTIVE_HANDLE
        if resolved is None:
            return
        if _ACTIVE_HANDLE is resolved:
            _ACTIVE_HANDLE = None
    resolved.shutdown()
    structlog.reset_defaults()


def get_active_logging_handle() -> LoggingHandle | None:
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


def _shutdown_previous_active_handle() -> None:
    previous = get_active_logging_handle()
    if previous is not None:
        shutdown_logging(previous)


def _build_formatter(kind: str) -> logging.Formatter:
    if kind == "json":
        return _JsonLineFormatter()
    if kind == "text":
        return _TextFormatter()
    raise ValueError(f"unsupported log format {kind!r}; expected 'json' or 'text'")


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    parsed = logging.getLevelName(value.strip().upper())
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            normalized = value.replace(tzinfo=UTC)
        else:
            normalized = value.astimezone(UTC)
        return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize_json_value(item) for item in value), key=repr)
    return repr(value)


__all__ = [
    "LoggingHandle",
    "LoggingSettings",
    "get_active_logging_handle",
    "setup_logging",
    "shutdown_logging",
]
