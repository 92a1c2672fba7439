"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import json
import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Source registration
    source_added = "source_added"
    source_removed = "source_removed"
    source_not_found = "source_not_found"
    sources_cleared = "sources_cleared"

    # Per-source view policy
    stride_changed = "stride_changed"
    column_visibility_changed = "column_visibility_changed"
    row_number_visibility_changed = "row_number_visibility_changed"

    # Sort projection
    sort_applied = "sort_applied"
    sort_reset = "sort_reset"
    sort_failed = "sort_failed"
    projection_reallocated = "projection_reallocated"

    # Cell writes
    write_dropped = "write_dropped"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

SORT_COMPARE_FAILED = "sort_compare_failed"
UNKNOWN_SOURCE = "unknown_source"
WRITE_OUT_OF_RANGE = "write_out_of_range"


# ---------------------------------------------------------------------------
# Context sanitation
# ---------------------------------------------------------------------------

_MAX_VALUE_LEN = 256

_JSON_SCALARS = (str, int, float, bool, type(None))


def sanitize_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *context* that is safe to serialize.

    Rules:
    - Non-string keys are converted with ``str()``.
    - Values that are not JSON scalars, lists or dicts are replaced by
      their ``repr()`` (cell values and source objects end up here).
    - String values longer than 256 chars are truncated.
    """
    return _sanitize_dict(context)


def _sanitize_dict(d: dict[Any, Any]) -> dict[str, Any]:
    return {str(k): _sanitize_value(v) for k, v in d.items()}


def _sanitize_value(v: Any) -> Any:
    if isinstance(v, dict):
        return _sanitize_dict(v)
    if isinstance(v, (list, tuple)):
        return [_sanitize_value(item) for item in v]
    if not isinstance(v, _JSON_SCALARS):
        v = repr(v)
    if isinstance(v, str) and len(v) > _MAX_VALUE_LEN:
        return v[:_MAX_VALUE_LEN] + "...[truncated]"
    return v


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ViewEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None

    def to_json(self) -> str:
        """Serialize as one deterministic JSON line (without newline)."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, default=str)


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

# Anything with a ``write(event)`` method; ``None`` discards events.
_sink: Any = None


def set_sink(sink: Any) -> None:
    """Install *sink* as the module-level event sink (``None`` disables)."""
    global _sink
    _sink = sink


def set_log_dir(log_dir: Any, config: dict[str, Any] | None = None) -> None:
    """Configure an NDJSON file sink under *log_dir*.

    Reads ``logging_fsync`` and ``logging_tail_bytes`` from *config* (as
    returned by :func:`multitable.config.load_view_config`) when given.
    """
    from pathlib import Path

    from multitable.logging.sink import EventSink

    cfg = config or {}
    fsync = bool(cfg.get("logging_fsync", False))
    tail_bytes = cfg.get("logging_tail_bytes")
    set_sink(
        EventSink(
            Path(log_dir),
            fsync=fsync,
            tail_bytes=int(tail_bytes) if tail_bytes is not None else None,
        )
    )


def set_memory_sink(config: dict[str, Any] | None = None) -> Any:
    """Install and return an in-memory sink.

    Its capacity is ``logging_memory_size`` from *config*, 1000 by default.
    """
    from multitable.logging.sink import MemorySink

    cfg = config or {}
    sink = MemorySink(maxlen=int(cfg.get("logging_memory_size", 1000)))
    set_sink(sink)
    return sink


def get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if _last_stderr_ts and now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[multitable] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: ViewEvent) -> None:
    """Write an event to the configured sink.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.

    Sanitizes the event context before writing.
    """
    try:
        sink = get_sink()
        if sink is None:
            return
        event = event.model_copy(update={"context": sanitize_context(event.context)})
        sink.write(event)
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def _emit_level(
    level: EventLevel,
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None,
    error_code: str | None,
) -> None:
    if _sink is None:
        return
    emit(
        ViewEvent(
            level=level,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        )
    )


def emit_debug(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit a debug-level event."""
    _emit_level(EventLevel.debug, event_type, message, context, error_code)


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    _emit_level(EventLevel.info, event_type, message, context, None)


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit a warning-level event."""
    _emit_level(EventLevel.warning, event_type, message, context, error_code)


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit an error-level event."""
    _emit_level(EventLevel.error, event_type, message, context, error_code)
