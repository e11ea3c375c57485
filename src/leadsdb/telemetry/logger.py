"""
Structured logging for leadsdb.

Log calls take keyword fields, which formatters render after the message
together with the current request context. API keys never reach the
output: registered key values and ``X-API-Key``/``LEADSDB_API_KEY``
assignments are redacted.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterator

REDACTED = "***REDACTED***"


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged during one API call.

    Attributes:
        request_id: Identifier of the logical call, shared by its retries
        operation: Operation name (e.g. "bulk_create")
    """

    request_id: str | None = None
    operation: str | None = None

    def fields(self) -> dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v}


_log_context: ContextVar[LogContext] = ContextVar("leadsdb_log_context", default=LogContext())


def get_log_context() -> LogContext:
    """Context of the API call running in the current task."""
    return _log_context.get()


@contextmanager
def log_context(request_id: str | None = None, operation: str | None = None) -> Iterator[LogContext]:
    """Scope a request context to a block; the previous one is restored on exit."""
    ctx = LogContext(request_id=request_id, operation=operation)
    reset = _log_context.set(ctx)
    try:
        yield ctx
    finally:
        _log_context.reset(reset)


class SensitiveDataMasker:
    """Redacts API keys from messages and fields."""

    PATTERNS: ClassVar[list[re.Pattern[str]]] = [
        re.compile(r"(x-api-key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.IGNORECASE),
        re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.IGNORECASE),
        re.compile(r"(LEADSDB_API_KEY=)\S+"),
    ]

    # Key values in use by live transports
    _secrets: ClassVar[set[str]] = set()
    # Shorter values would redact ordinary words
    MIN_SECRET_LENGTH: ClassVar[int] = 8

    @classmethod
    def register_secret(cls, value: str) -> None:
        """Redact ``value`` wherever it appears, not only after a known label."""
        if value and len(value) >= cls.MIN_SECRET_LENGTH:
            cls._secrets.add(value)

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        for pattern in self.PATTERNS:
            text = pattern.sub(rf"\1{REDACTED}", text)
        return text

    def mask_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Mask field values; fields named like a key are dropped to the marker."""
        masked: dict[str, Any] = {}
        for name, value in fields.items():
            if "key" in name.lower():
                masked[name] = REDACTED
            elif isinstance(value, str):
                masked[name] = self.mask(value)
            else:
                masked[name] = value
        return masked


def _record_fields(record: logging.LogRecord, masker: SensitiveDataMasker) -> dict[str, Any]:
    fields: dict[str, Any] = dict(get_log_context().fields())
    fields.update(masker.mask_fields(getattr(record, "extra_fields", {})))
    return fields


class TextFormatter(logging.Formatter):
    """``time | LEVEL | logger | message | k=v ...`` lines."""

    def __init__(self, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self._masker = masker or SensitiveDataMasker()

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = self._masker.mask(super().formatMessage(record))
        fields = _record_fields(record, self._masker)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record, fields flattened next to the message."""

    def __init__(self, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__()
        self._masker = masker or SensitiveDataMasker()

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": self._masker.mask(record.getMessage()),
        }
        data.update(_record_fields(record, self._masker))
        if record.exc_info:
            data["exception"] = self._masker.mask(self.formatException(record.exc_info))
        return json.dumps(data, default=str)


class LeadsDbLogger:
    """Logger taking structured keyword fields.

    leadsdb loggers do not propagate to the root logger; route them with
    ``configure``.

    Example:
        >>> LeadsDbLogger.configure(logging.INFO, formatter=JsonFormatter())
        >>> logger = get_logger("leadsdb.batch")
        >>> logger.info("Flushed batch", size=100, created=98, failed=2)
    """

    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _level: ClassVar[int] = logging.WARNING
    _handler: ClassVar[logging.Handler | None] = None

    @classmethod
    def configure(
        cls,
        level: int = logging.INFO,
        *,
        stream: Any = None,
        formatter: logging.Formatter | None = None,
    ) -> None:
        """Send every leadsdb logger to one stream.

        Args:
            level: Minimum stdlib logging level
            stream: Output stream (default: stderr)
            formatter: Record formatter (default: TextFormatter)
        """
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(formatter or TextFormatter())
        cls._level = level
        cls._handler = handler
        for logger in cls._loggers.values():
            cls._attach(logger)

    @classmethod
    def _attach(cls, logger: logging.Logger) -> None:
        logger.handlers.clear()
        if cls._handler is not None:
            logger.addHandler(cls._handler)
        else:
            fallback = logging.StreamHandler(sys.stderr)
            fallback.setFormatter(TextFormatter())
            logger.addHandler(fallback)
        logger.setLevel(cls._level)
        logger.propagate = False

    @classmethod
    def get_logger(cls, name: str) -> LeadsDbLogger:
        if name not in cls._loggers:
            logger = logging.getLogger(name)
            cls._attach(logger)
            cls._loggers[name] = logger
        return cls(cls._loggers[name])

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, exc_info: bool = False, **fields: Any) -> None:
        extra = {"extra_fields": fields} if fields else None
        self._logger.log(level, msg, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, msg, exc_info=True, **fields)


def get_logger(name: str) -> LeadsDbLogger:
    """Get a logger instance."""
    return LeadsDbLogger.get_logger(name)
