"""Structured logging helpers shared by the decoder and the CLI.

Purpose
    Keep every emission of logging data predictable and contextual without
    forcing applications to adopt a specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``TRACE``: level below ``DEBUG`` for per-field absence events.
    - ``log_trace`` / ``log_debug`` / ``log_info`` / ``log_error``: emit structured
      entries via a single private emitter.
    - ``make_event``: convenience builder for per-field event payloads.

System Integration
    The populator reports each field it decodes at ``DEBUG`` and each key it
    finds absent or field it skips at ``TRACE``, so enabling ``DEBUG`` shows
    what was read without listing every unset variable. The composition root
    reports decode start, completion, and failures. Only keys and field paths
    are logged, never raw values, because environment values often carry
    secrets.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_env_decoder_trace_id", default=None)
"""Current trace identifier propagated through logging helpers."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_env_decoder")
_LOGGER.addHandler(logging.NullHandler())

TRACE: Final[int] = 5
"""Level for skipped fields and absent keys; quieter than ``DEBUG``."""
logging.addLevelName(TRACE, "TRACE")


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


def log_trace(message: str, **fields: Any) -> None:
    """Emit a structured trace entry for an absent key or skipped field."""

    _emit(TRACE, message, fields)


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
    key: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for a field-level event.

    Inputs
        key: Derived environment key the event refers to.
        path: Dotted attribute path of the field, if known.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('APP_PORT', 'port', {'kind': 'leaf'})
    {'key': 'APP_PORT', 'path': 'port', 'kind': 'leaf'}
    """

    event: dict[str, Any] = {"key": key, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    if not _LOGGER.isEnabledFor(level):
        return
    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
