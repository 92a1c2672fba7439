"""Error types and operation results for the aggregated table view."""

from __future__ import annotations

from enum import Enum


class MultiTableError(Exception):
    """Base class for all multitable errors."""


class LogicalIndexError(MultiTableError, IndexError):
    """A logical row or column index outside the current view bounds.

    Attributes:
        index: The offending index.
        limit: Exclusive upper bound at the time of the call.
        axis: ``"row"``, ``"column"`` or ``"source column"``.
    """

    def __init__(
        self,
        index: int,
        limit: int,
        axis: str = "column",
        message: str | None = None,
    ) -> None:
        self.index = index
        self.limit = limit
        self.axis = axis
        super().__init__(
            message
            or f"Logical {axis} index {index} out of range (0 <= index < {limit})"
        )


class InvalidStrideError(MultiTableError, ValueError):
    """Stride must be an integer >= 1.

    Attributes:
        stride: The rejected value.
    """

    def __init__(self, stride: object) -> None:
        self.stride = stride
        super().__init__(f"Stride must be an integer >= 1, got {stride!r}")


class BindingResult(str, Enum):
    """Outcome of an operation addressed to a registered source."""

    OK = "ok"
    NOT_FOUND = "not_found"

    def __bool__(self) -> bool:
        return self is BindingResult.OK
