"""
Structured logging for the kitchen kernel and engines.

Responsibility:
    One JSON object per log line, carrying the standard envelope
    (``ts``, ``level``, ``logger``, ``message``), the bound production
    context (order, line item, actor, correlation id), any ``extra`` fields
    and, for kitchen exceptions, the error ``code`` and its attributes.

Architecture position:
    Kernel -- used by every layer.  Loggers live under the
    ``kitchen_kernel.`` namespace; the application configures the root of
    that namespace once.

Usage:
    logger = get_logger("engines.tracking")
    with LogContext.bind(order_id="ord-9", item_id="item-1"):
        logger.info("completion_recorded", extra={"deducted": Decimal("3")})
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

_LOGGER_PREFIX = "kitchen_kernel"

# Production context carried into every record.
_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"kitchen_log_{name}", default=None)
    for name in ("correlation_id", "order_id", "item_id", "actor_id")
}


class LogContext:
    """Context-local log fields (safe across threads and asyncio tasks)."""

    @staticmethod
    def set(
        *,
        correlation_id: str | None = None,
        order_id: str | None = None,
        item_id: str | None = None,
        actor_id: str | None = None,
    ) -> None:
        """Set the given fields; None leaves a field as it is."""
        LogContext._apply(
            correlation_id=correlation_id,
            order_id=order_id,
            item_id=item_id,
            actor_id=actor_id,
        )

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: value
            for name, var in _CONTEXT_VARS.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    def bind(**fields: str | None) -> _BoundContext:
        """Set fields for the duration of a ``with`` block, then restore them."""
        return _BoundContext(fields)

    @staticmethod
    def _apply(**fields: str | None) -> dict[str, Token]:
        tokens: dict[str, Token] = {}
        for name, value in fields.items():
            if value is not None and name in _CONTEXT_VARS:
                tokens[name] = _CONTEXT_VARS[name].set(value)
        return tokens


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = fields
        self._tokens: dict[str, Token] = {}

    def __enter__(self) -> type[LogContext]:
        self._tokens = LogContext._apply(**self._fields)
        return LogContext

    def __exit__(self, *exc_info: Any) -> None:
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        self._tokens = {}


# Attributes every LogRecord has; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Renders a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry.update(self._exception_fields(record.exc_info[1]))
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # item_id, current_status, remaining, errors, ...
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger named ``kitchen_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``kitchen_kernel`` logger.

    Only the first call has an effect; later calls return immediately.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Undo ``configure_logging``. Test helper."""
    global _configured
    with _state_lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
