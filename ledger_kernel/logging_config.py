"""
Structured JSON logging for the ledger kernel.

Every record under the ``ledger_kernel`` logger is rendered as one JSON
line carrying the operation context (ledger, actor, operation, transfer
and trigger ids) bound by ``TaxedLedger`` around each top-level call.
Kernel exceptions contribute their ``code`` and context attributes as
``exc_*`` fields.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

_LOGGER_PREFIX = "ledger_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default=_EMPTY)


class LogContext:
    """Operation-scoped fields merged into every log line."""

    FIELDS = frozenset(
        {"correlation_id", "ledger_id", "actor", "operation", "transfer_id", "trigger_id"}
    )

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - cls.FIELDS
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields. None values leave the field untouched."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """Set fields for the duration of a ``with`` block."""
        cls._merged(fields)
        return _BoundContext(fields)


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(LogContext._merged(self._fields))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Context attributes set by LedgerKernelError subclasses
    for key, value in vars(exc).items():
        if not key.startswith("_") and key != "code":
            fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_KEYS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Child logger under ``ledger_kernel``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``ledger_kernel`` logger. Only the first call has effect."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging(). Test use only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
