"""Change notifications and refresh batching.

The view records what changed in a :class:`ChangeLog`; a presentation
layer polls the version counters or drains the pending events, and may
coalesce many changes into one refresh with a :class:`RefreshBatcher`.
"""

from __future__ import annotations

from collections import deque
from enum import Enum, IntFlag
from typing import Any

from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    structure = "structure"
    data = "data"
    sort = "sort"


class ChangeEvent(BaseModel):
    """One recorded change to a view."""

    kind: ChangeKind
    version: int
    operation: str
    detail: dict[str, Any] = Field(default_factory=dict)


class RefreshMode(IntFlag):
    """Refresh work a consumer must do; modes can be OR'd."""

    NONE = 0
    STRUCTURE = 0x01
    DATA = 0x02
    SORT = 0x04
    ALL = STRUCTURE | DATA | SORT


_MODE_FOR_KIND = {
    ChangeKind.structure: RefreshMode.STRUCTURE,
    ChangeKind.data: RefreshMode.DATA,
    ChangeKind.sort: RefreshMode.SORT,
}


def mode_for(kind: ChangeKind) -> RefreshMode:
    return _MODE_FOR_KIND[ChangeKind(kind)]


class ChangeLog:
    """Per-kind version counters plus a bounded list of pending events."""

    def __init__(self, max_pending: int = 1000) -> None:
        self._versions = {kind: 0 for kind in ChangeKind}
        self._pending: deque[ChangeEvent] = deque(maxlen=max_pending)

    def version(self, kind: ChangeKind) -> int:
        return self._versions[ChangeKind(kind)]

    @property
    def total_version(self) -> int:
        return sum(self._versions.values())

    def record(self, kind: ChangeKind, operation: str, **detail: Any) -> ChangeEvent:
        kind = ChangeKind(kind)
        self._versions[kind] += 1
        event = ChangeEvent(
            kind=kind,
            version=self._versions[kind],
            operation=operation,
            detail=detail,
        )
        self._pending.append(event)
        return event

    @property
    def pending(self) -> tuple[ChangeEvent, ...]:
        return tuple(self._pending)

    def drain(self) -> list[ChangeEvent]:
        """Return the pending events and clear them."""
        events = list(self._pending)
        self._pending.clear()
        return events


class RefreshBatcher:
    """Coalesces refresh requests until the consumer flushes."""

    def __init__(self) -> None:
        self._pending = RefreshMode.NONE

    @property
    def pending(self) -> RefreshMode:
        return self._pending

    def request(self, mode: RefreshMode) -> None:
        self._pending |= RefreshMode(mode)

    def collect(self, changes: ChangeLog) -> RefreshMode:
        """Drain *changes* into the pending mode and return it."""
        for event in changes.drain():
            self._pending |= mode_for(event.kind)
        return self._pending

    def flush(self) -> RefreshMode:
        mode = self._pending
        self._pending = RefreshMode.NONE
        return mode
