"""Event sinks: an NDJSON file sink and a bounded in-memory sink.

The file sink appends one JSON line per event to ``<log_dir>/events.ndjson``.
Writes use ``json.dumps(sort_keys=True)`` for deterministic output.

Concurrency safety:

- Each append acquires an exclusive ``fcntl.flock`` on the log file.
- Reads acquire a shared lock.
- On platforms without ``fcntl`` (Windows), locking is skipped.
"""

from __future__ import annotations

import json
import os
from collections import deque
from pathlib import Path
from typing import Any

from multitable.logging.events import ViewEvent

# Try to import fcntl for file locking (Unix only)
try:
    import fcntl

    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False

# Default tail-read size (2 MB)
_DEFAULT_TAIL_BYTES = 2 * 1024 * 1024

_LOG_FILENAME = "events.ndjson"


def _filter_events(
    events: list[dict[str, Any]],
    level: str | None,
    event_type: str | None,
    limit: int,
) -> list[dict[str, Any]]:
    if level:
        events = [e for e in events if e.get("level") == level]
    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]
    # Most recent first
    events.reverse()
    return events[:limit]


class EventSink:
    """Append-only NDJSON log writer with file locking."""

    def __init__(self, log_dir: Path, *, fsync: bool = False, tail_bytes: int | None = None) -> None:
        self.log_dir = Path(log_dir)
        self.path = self.log_dir / _LOG_FILENAME
        self._fsync = fsync
        self._tail_bytes = tail_bytes if tail_bytes is not None else _DEFAULT_TAIL_BYTES
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, event: ViewEvent) -> None:
        """Append *event* to the log file."""
        self._append(event.to_json() + "\n")

    def read_events(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Read events most-recent-first, with optional filters.

        Uses tail-style reading to bound memory usage on large log files.
        """
        return _filter_events(self._read_ndjson(), level, event_type, min(limit, 2000))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, line: str) -> None:
        """Append a single line under exclusive file lock."""
        if _HAS_FCNTL:
            fd = os.open(str(self.path), os.O_WRONLY | os.O_CREAT | os.O_APPEND)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                os.write(fd, line.encode("utf-8"))
                if self._fsync:
                    os.fsync(fd)
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
        else:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
                if self._fsync:
                    f.flush()
                    os.fsync(f.fileno())

    def _read_ndjson(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []

        events: list[dict[str, Any]] = []
        for line in self._read_tail().splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return events

    def _read_tail(self) -> str:
        """Read up to the last ``self._tail_bytes`` of the log under shared lock."""
        if _HAS_FCNTL:
            fd = os.open(str(self.path), os.O_RDONLY)
            try:
                fcntl.flock(fd, fcntl.LOCK_SH)
                file_size = os.fstat(fd).st_size
                if file_size <= self._tail_bytes:
                    data = os.read(fd, file_size)
                else:
                    os.lseek(fd, file_size - self._tail_bytes, os.SEEK_SET)
                    data = os.read(fd, self._tail_bytes)
                    # Drop the first (likely partial) line
                    idx = data.find(b"\n")
                    if idx >= 0:
                        data = data[idx + 1:]
                return data.decode("utf-8", errors="replace")
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)

        file_size = self.path.stat().st_size
        with open(self.path, "rb") as f:
            if file_size > self._tail_bytes:
                f.seek(file_size - self._tail_bytes)
                data = f.read()
                idx = data.find(b"\n")
                if idx >= 0:
                    data = data[idx + 1:]
            else:
                data = f.read()
        return data.decode("utf-8", errors="replace")


class MemorySink:
    """Keeps the newest *maxlen* events in memory, as plain dicts."""

    def __init__(self, maxlen: int = 1000) -> None:
        self._events: deque[dict[str, Any]] = deque(maxlen=maxlen)

    def write(self, event: ViewEvent) -> None:
        self._events.append(event.model_dump(mode="json"))

    def read_events(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        return _filter_events(list(self._events), level, event_type, limit)

    @property
    def maxlen(self) -> int | None:
        return self._events.maxlen

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
