"""Registration of data sources with per-source visibility and stride."""

from __future__ import annotations

from typing import Any, Iterator

from multitable.errors import BindingResult, InvalidStrideError, LogicalIndexError
from multitable.sources import DataSource


class SourceBinding:
    """One registered source plus its view policy.

    The visibility mask grows on demand and is never shrunk; new slots
    are visible.
    """

    def __init__(self, source: DataSource) -> None:
        self.source = source
        self.stride = 1
        self.column_visible: list[bool] = []

    def ensure_capacity(self, minimum: int) -> None:
        if len(self.column_visible) < minimum:
            self.column_visible.extend([True] * (minimum - len(self.column_visible)))

    def set_column_visible(self, column: int, visible: bool) -> None:
        self.ensure_capacity(column + 1)
        self.column_visible[column] = bool(visible)

    def is_column_visible(self, column: int) -> bool:
        self.ensure_capacity(column + 1)
        return self.column_visible[column]

    def visible_columns(self) -> list[int]:
        """Source column indexes that are currently visible, in order."""
        n = self.source.column_count()
        self.ensure_capacity(n)
        return [c for c in range(n) if self.column_visible[c]]

    def visible_column_count(self) -> int:
        return len(self.visible_columns())

    def exposed_row_count(self) -> int:
        """Rows exposed after striding: ``ceil(rows / stride)``."""
        return (self.source.row_count() + self.stride - 1) // self.stride

    def source_column_of(self, k: int) -> int:
        """Return the source column of the *k*-th visible column."""
        return self.visible_columns()[k]

    def source_row_of(self, row: int) -> int | None:
        """Map an exposed row onto the source, or None past its extent."""
        source_row = row * self.stride
        if source_row >= self.source.row_count():
            return None
        return source_row

    def __repr__(self) -> str:
        return f"SourceBinding(source={self.source!r}, stride={self.stride})"


class BindingTable:
    """Ordered list of source bindings.

    Sources are matched by identity; the same source object may be added
    more than once, each add producing an independent binding.
    """

    def __init__(self) -> None:
        self._bindings: list[SourceBinding] = []

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[SourceBinding]:
        return iter(self._bindings)

    @property
    def bindings(self) -> tuple[SourceBinding, ...]:
        return tuple(self._bindings)

    def add(self, source: DataSource) -> SourceBinding:
        binding = SourceBinding(source)
        self._bindings.append(binding)
        return binding

    def find(self, source: Any) -> SourceBinding | None:
        """Return the first binding whose source is *source*, or None."""
        for binding in self._bindings:
            if binding.source is source:
                return binding
        return None

    def remove(self, source: Any) -> BindingResult:
        binding = self.find(source)
        if binding is None:
            return BindingResult.NOT_FOUND
        self._bindings.remove(binding)
        return BindingResult.OK

    def clear(self) -> None:
        self._bindings.clear()

    def set_stride(self, source: Any, stride: int) -> BindingResult:
        """Set the stride of *source*'s binding.

        Raises:
            InvalidStrideError: If *stride* is not an integer >= 1.
        """
        if isinstance(stride, bool) or not isinstance(stride, int) or stride < 1:
            raise InvalidStrideError(stride)
        binding = self.find(source)
        if binding is None:
            return BindingResult.NOT_FOUND
        binding.stride = stride
        return BindingResult.OK

    def set_column_visible(self, source: Any, column: int, visible: bool) -> BindingResult:
        """Show or hide one source column of *source*'s binding.

        Raises:
            LogicalIndexError: If *source* is bound and *column* is negative.
        """
        binding = self.find(source)
        if binding is None:
            return BindingResult.NOT_FOUND
        if column < 0:
            raise LogicalIndexError(
                column,
                binding.source.column_count(),
                axis="source column",
                message=f"Source column index {column} is negative",
            )
        binding.set_column_visible(column, visible)
        return BindingResult.OK

    def visible_column_count(self) -> int:
        return sum(binding.visible_column_count() for binding in self._bindings)

    def row_count(self) -> int:
        return max((binding.exposed_row_count() for binding in self._bindings), default=0)

    def resolve(self, column: int, row_number_visible: bool = False) -> tuple[SourceBinding, int]:
        """Map a logical column onto ``(binding, source_column)``.

        Walks the bindings accumulating visible column counts until the
        running total passes the target, then picks the matching visible
        column inside that binding.

        Raises:
            LogicalIndexError: If *column* is the row-number column or lies
                beyond the visible columns.
        """
        limit = self.visible_column_count() + (1 if row_number_visible else 0)
        target = column - 1 if row_number_visible else column
        if target < 0:
            raise LogicalIndexError(column, limit)
        total = 0
        for binding in self._bindings:
            visible = binding.visible_columns()
            if total + len(visible) > target:
                return binding, visible[target - total]
            total += len(visible)
        raise LogicalIndexError(column, limit)
