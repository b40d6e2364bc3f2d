"""Structured logging helpers shared by sources, serializers and the manager.

Purpose
    Keep every emission of logging data predictable and contextual without
    forcing applications to adopt a specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit structured entries via a
      single private emitter.
    - ``make_event``: convenience builder for source lifecycle payloads.

System Integration
    Used by adapters and the composition root so all diagnostics carry the
    same trace metadata. The merge engine and change tracker stay free from
    logging concerns.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_tracked_config_trace_id", default=None)
"""Current trace identifier propagated through logging helpers."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_tracked_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    source: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for source lifecycle events.

    Examples
    --------
    >>> make_event('local', None, {'fields': 3})
    {'source': 'local', 'path': None, 'fields': 3}
    """

    event: dict[str, Any] = {"source": source, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
