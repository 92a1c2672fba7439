"""Aggregated view: several data sources presented as one logical table.

Logical columns are the optional row-number column followed by the
visible columns of each registered source, in registration order.  The
logical row count is the longest strided source.  Reads and writes
addressed by sorted row go through the sort projection first, then are
resolved to ``(source, source_row, source_column)``.

The view is itself a :class:`~multitable.sources.DataSource`, so a view
can be registered with another view.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from multitable.bindings import BindingTable, SourceBinding
from multitable.config import DEFAULT_CONFIG
from multitable.errors import BindingResult, LogicalIndexError
from multitable.logging.events import (
    UNKNOWN_SOURCE,
    WRITE_OUT_OF_RANGE,
    EventType,
    emit_debug,
    emit_info,
    emit_warning,
)
from multitable.projection import SortProjection
from multitable.refresh import ChangeKind, ChangeLog
from multitable.sources import DataSource, TypeTag

logger = logging.getLogger(__name__)

# Row-number column shows ``real_row + ROW_NUMBER_BASE``.
ROW_NUMBER_BASE = 0


class AggregatedView:
    """One sortable logical table over many sources."""

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        """Initialize an empty view.

        Args:
            config: Optional overrides of
                :data:`multitable.config.DEFAULT_CONFIG` (``row_number_visible``,
                ``row_number_name``, ``unknown_column_name``,
                ``max_pending_changes``).
        """
        cfg = dict(DEFAULT_CONFIG)
        cfg.update(config or {})
        self._table = BindingTable()
        self._row_number_visible = bool(cfg["row_number_visible"])
        self.row_number_name = str(cfg["row_number_name"])
        self.unknown_column_name = str(cfg["unknown_column_name"])
        self.changes = ChangeLog(max_pending=int(cfg["max_pending_changes"]))
        self._projection = SortProjection()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AggregatedView:
        """Build a view from a config dict (see :func:`load_view_config`)."""
        return cls(config)

    # ------------------------------------------------------------------
    # Source registration
    # ------------------------------------------------------------------

    @property
    def bindings(self) -> tuple[SourceBinding, ...]:
        return self._table.bindings

    def binding_for(self, source: Any) -> SourceBinding | None:
        return self._table.find(source)

    def add_source(self, source: DataSource) -> SourceBinding:
        binding = self._table.add(source)
        self._structure_changed(
            "add_source",
            EventType.source_added,
            "Source added",
            source=source,
            bindings=len(self._table),
        )
        return binding

    def remove_source(self, source: Any) -> BindingResult:
        result = self._table.remove(source)
        if result is BindingResult.NOT_FOUND:
            self._report_unknown("remove_source", source)
            return result
        self._structure_changed(
            "remove_source",
            EventType.source_removed,
            "Source removed",
            source=source,
            bindings=len(self._table),
        )
        return result

    def clear(self) -> None:
        self._table.clear()
        self._structure_changed("clear", EventType.sources_cleared, "All sources removed")

    def set_stride(self, source: Any, stride: int) -> BindingResult:
        """Expose only every *stride*-th row of *source*.

        Raises:
            InvalidStrideError: If *stride* is not an integer >= 1.
        """
        result = self._table.set_stride(source, stride)
        if result is BindingResult.NOT_FOUND:
            self._report_unknown("set_stride", source)
            return result
        self._structure_changed(
            "set_stride",
            EventType.stride_changed,
            f"Stride set to {stride}",
            source=source,
            stride=stride,
        )
        return result

    def set_column_visible(self, source: Any, column: int, visible: bool) -> BindingResult:
        result = self._table.set_column_visible(source, column, visible)
        if result is BindingResult.NOT_FOUND:
            self._report_unknown("set_column_visible", source)
            return result
        self._structure_changed(
            "set_column_visible",
            EventType.column_visibility_changed,
            f"Column {column} {'shown' if visible else 'hidden'}",
            source=source,
            column=column,
            visible=bool(visible),
        )
        return result

    @property
    def row_number_visible(self) -> bool:
        return self._row_number_visible

    def set_row_number_visible(self, visible: bool) -> None:
        visible = bool(visible)
        if visible == self._row_number_visible:
            return
        self._row_number_visible = visible
        self._structure_changed(
            "set_row_number_visible",
            EventType.row_number_visibility_changed,
            f"Row numbers {'shown' if visible else 'hidden'}",
            visible=visible,
        )

    def _structure_changed(
        self,
        operation: str,
        event_type: EventType,
        message: str,
        **detail: Any,
    ) -> None:
        self._projection.allocate(self.row_count())
        self.changes.record(ChangeKind.structure, operation, **detail)
        emit_info(event_type, message, detail)

    def _report_unknown(self, operation: str, source: Any) -> None:
        emit_warning(
            EventType.source_not_found,
            f"{operation}: source is not registered",
            {"operation": operation, "source": source},
            error_code=UNKNOWN_SOURCE,
        )

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    def row_count(self) -> int:
        return self._table.row_count()

    def column_count(self) -> int:
        return self._table.visible_column_count() + (1 if self._row_number_visible else 0)

    def is_row_number_column(self, column: int) -> bool:
        return self._row_number_visible and column == 0

    def _in_column_range(self, column: int) -> bool:
        return 0 <= column < self.column_count()

    def resolve(self, column: int) -> tuple[SourceBinding, int]:
        """Map a logical data column onto ``(binding, source_column)``.

        Raises:
            LogicalIndexError: For the row-number column or an index outside
                the visible columns.
        """
        return self._table.resolve(column, self._row_number_visible)

    def column_name(self, column: int) -> str:
        if not self._in_column_range(column):
            return self.unknown_column_name
        if self.is_row_number_column(column):
            return self.row_number_name
        binding, source_column = self.resolve(column)
        return binding.source.column_name(source_column)

    def column_type(self, column: int) -> TypeTag:
        if not self._in_column_range(column):
            return TypeTag.OTHER
        if self.is_row_number_column(column):
            return TypeTag.INTEGER
        binding, source_column = self.resolve(column)
        return binding.source.column_type(source_column)

    # ------------------------------------------------------------------
    # Real-row access
    # ------------------------------------------------------------------

    def read_cell(self, real_row: int, column: int) -> Any:
        """Read the value at an unsorted row.

        Rows past a strided or shorter source's extent read ``None``.
        """
        if not len(self._table):
            return None
        if self.is_row_number_column(column):
            return real_row + ROW_NUMBER_BASE
        binding, source_column = self.resolve(column)
        source_row = binding.source_row_of(real_row)
        if source_row is None:
            return None
        return binding.source.get_value(source_row, source_column)

    def write_cell(self, value: Any, real_row: int, column: int) -> bool:
        """Write *value* back to the source behind an unsorted cell.

        Writes to the row-number column, and writes past the extent of the
        owning source, are dropped.

        Returns:
            True if the value was handed to a source.
        """
        if not len(self._table) or self.is_row_number_column(column):
            return False
        binding, source_column = self.resolve(column)
        source_row = binding.source_row_of(real_row)
        if source_row is None:
            logger.debug(
                "dropping write at row %d, column %d: past end of %r",
                real_row, column, binding.source,
            )
            emit_debug(
                EventType.write_dropped,
                "Write past end of source dropped",
                {"row": real_row, "column": column, "value": value},
                error_code=WRITE_OUT_OF_RANGE,
            )
            return False
        binding.source.set_value(source_row, source_column, value)
        self.changes.record(ChangeKind.data, "write_cell", row=real_row, column=column)
        return True

    # ------------------------------------------------------------------
    # Sorted-row access
    # ------------------------------------------------------------------

    def _sync_projection(self) -> int:
        """Replace a stale permutation; return the current row count."""
        row_count = self.row_count()
        previous = len(self._projection)
        if self._projection.ensure_length(row_count):
            emit_debug(
                EventType.projection_reallocated,
                "Sort projection reallocated",
                {"previous_rows": previous, "rows": row_count},
            )
        return row_count

    def _real_row(self, sorted_row: int) -> int:
        row_count = self._sync_projection()
        if not 0 <= sorted_row < row_count:
            raise LogicalIndexError(sorted_row, row_count, axis="row")
        return self._projection.real_row(sorted_row)

    def get_value(self, row: int, column: int) -> Any:
        """Read the value displayed at sorted position *row*.

        Raises:
            LogicalIndexError: If *row* is outside ``[0, row_count())``.
        """
        if not self._in_column_range(column):
            return None
        return self.read_cell(self._real_row(row), column)

    def set_value(self, row: int, column: int, value: Any) -> None:
        """Write *value* at sorted position *row*.

        Raises:
            LogicalIndexError: If *row* is outside ``[0, row_count())``.
        """
        if not self._in_column_range(column):
            return
        self.write_cell(value, self._real_row(row), column)

    def is_cell_editable(self, row: int, column: int) -> bool:
        """True if a write at sorted position *row* would change a source.

        Cells past a short source, the row-number column and cells of a
        source with a true ``read_only`` attribute are not editable.
        """
        if not self._in_column_range(column) or self.is_row_number_column(column):
            return False
        row_count = self._sync_projection()
        if not 0 <= row < row_count:
            return False
        binding, _ = self.resolve(column)
        if getattr(binding.source, "read_only", False):
            return False
        return binding.source_row_of(self._projection.real_row(row)) is not None

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def sort_by(self, column: int) -> bool:
        """Sort rows by *column*, descending, absent values last.

        Returns:
            False if the sort was aborted; the previous order is kept.

        Raises:
            LogicalIndexError: If *column* is out of range.
        """
        if not self._in_column_range(column):
            raise LogicalIndexError(column, self.column_count())
        self._sync_projection()
        applied = self._projection.sort(column, self)
        self.changes.record(ChangeKind.sort, "sort_by", column=column, applied=applied)
        return applied

    def reset_sort(self) -> None:
        self._projection.reset(self.row_count())
        self.changes.record(ChangeKind.sort, "reset_sort")
        emit_info(EventType.sort_reset, "Sort reset")

    def sorted_column(self) -> int:
        """Column of the last sort, or -1 when unsorted."""
        return self._projection.sorted_column

    def sorted_row_of(self, real_row: int) -> int:
        """Sorted position of *real_row*, or -1 if it is not a current row."""
        self._sync_projection()
        return self._projection.sorted_row_of(real_row)

    @property
    def sort_indexes(self) -> tuple[int, ...]:
        """Current permutation: real row shown at each sorted position."""
        self._sync_projection()
        return self._projection.indexes

    def __repr__(self) -> str:
        return (
            f"AggregatedView(sources={len(self._table)}, "
            f"rows={self.row_count()}, columns={self.column_count()})"
        )
