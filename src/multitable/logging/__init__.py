"""Structured event logging for multitable.

Provides a unified event schema, NDJSON and in-memory sinks, and safe
emit helpers that never raise uncaught exceptions.
"""

from multitable.logging.events import (
    EventLevel,
    EventType,
    ViewEvent,
    emit,
    emit_debug,
    emit_error,
    emit_info,
    emit_warning,
    get_sink,
    sanitize_context,
    set_log_dir,
    set_memory_sink,
    set_sink,
)
from multitable.logging.sink import EventSink, MemorySink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "MemorySink",
    "ViewEvent",
    "emit",
    "emit_debug",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_sink",
    "sanitize_context",
    "set_log_dir",
    "set_memory_sink",
    "set_sink",
]
