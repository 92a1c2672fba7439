"""Sort projection: a row permutation kept apart from the data.

Sorting never touches the sources.  The projection holds
``indexes[sorted_position] = real_row`` and is rebuilt as the identity
whenever its length no longer matches the view's row count.
"""

from __future__ import annotations

import logging
from functools import cmp_to_key
from numbers import Real
from typing import Any, Protocol

import polars as pl

from multitable.logging.events import (
    SORT_COMPARE_FAILED,
    EventType,
    emit_info,
    emit_warning,
)
from multitable.sources import TypeTag, is_numeric

logger = logging.getLogger(__name__)

UNSORTED = -1


class RowReader(Protocol):
    """What the projection needs from the view to sort it."""

    def row_count(self) -> int: ...

    def column_type(self, column: int) -> TypeTag: ...

    def read_cell(self, real_row: int, column: int) -> Any: ...


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def compare_descending(a: Any, b: Any) -> int:
    """Three-way comparator for the general sort path.

    Present values sort before absent ones; numbers compare by value and
    everything else by its string form, both descending.
    """
    if a is not None and b is None:
        return -1
    if a is None and b is not None:
        return 1
    if a is None and b is None:
        return 0
    if _is_number(a) and _is_number(b):
        return (b > a) - (b < a)
    sa, sb = str(a), str(b)
    return (sb > sa) - (sb < sa)


_VALUE_COL = "__sort_value__"
_ROW_IDX_COL = "__sort_row_idx__"


def numeric_order(values: list[Any]) -> list[int]:
    """Return row positions of *values* sorted descending, absent last.

    Ties keep their original order.  Integer columns sort as Int64 and any
    float present makes the column Float64.

    Raises:
        TypeError: If a present value is not a number.  Integers outside
            the Int64 range also fail, with the error Polars raises.
    """
    for value in values:
        if value is not None and not _is_number(value):
            raise TypeError(f"Non-numeric value {value!r} in numeric column")
    if all(isinstance(v, int) for v in values if v is not None):
        series = pl.Series(_VALUE_COL, values, dtype=pl.Int64)
    else:
        series = pl.Series(
            _VALUE_COL,
            [None if v is None else float(v) for v in values],
            dtype=pl.Float64,
        )
    result = (
        pl.DataFrame([series])
        .with_row_index(_ROW_IDX_COL)
        .sort(
            by=[_VALUE_COL, _ROW_IDX_COL],
            descending=[True, False],
            nulls_last=True,
            maintain_order=True,
        )
    )
    return result[_ROW_IDX_COL].to_list()


class SortProjection:
    """Permutation of real rows plus the last sort key."""

    def __init__(self, row_count: int = 0) -> None:
        self._indexes: list[int] = list(range(row_count))
        self._sorted_column = UNSORTED

    @property
    def indexes(self) -> tuple[int, ...]:
        return tuple(self._indexes)

    @property
    def sorted_column(self) -> int:
        return self._sorted_column

    def __len__(self) -> int:
        return len(self._indexes)

    def allocate(self, row_count: int) -> None:
        """Replace the permutation with the identity; keeps the sort key."""
        self._indexes = list(range(row_count))

    def ensure_length(self, row_count: int) -> bool:
        """Reallocate if the permutation length is stale.

        Returns:
            True if the permutation was replaced.
        """
        if len(self._indexes) == row_count:
            return False
        logger.debug("reallocating sort projection: %d -> %d rows", len(self._indexes), row_count)
        self.allocate(row_count)
        return True

    def reset(self, row_count: int | None = None) -> None:
        self.allocate(len(self._indexes) if row_count is None else row_count)
        self._sorted_column = UNSORTED

    def real_row(self, sorted_row: int) -> int:
        return self._indexes[sorted_row]

    def sorted_row_of(self, real_row: int) -> int:
        """Reverse lookup: sorted position of *real_row*, or -1."""
        for i, row in enumerate(self._indexes):
            if row == real_row:
                return i
        return -1

    def sort(self, column: int, reader: RowReader) -> bool:
        """Sort rows by the displayed values of *column*, descending.

        Ties keep real-row order.  Absent values go last.  If reading or
        comparing values raises, the permutation is left unchanged and
        False is returned.
        """
        self._sorted_column = column
        row_count = reader.row_count()
        self.ensure_length(row_count)
        try:
            values = [reader.read_cell(row, column) for row in range(row_count)]
            if is_numeric(reader.column_type(column)):
                order = numeric_order(values)
            else:
                order = sorted(
                    range(row_count),
                    key=cmp_to_key(lambda a, b: compare_descending(values[a], values[b])),
                )
        except Exception as exc:
            emit_warning(
                EventType.sort_failed,
                f"Sort by column {column} aborted: {exc}",
                {"column": column, "row_count": row_count, "exception": type(exc).__name__},
                error_code=SORT_COMPARE_FAILED,
            )
            return False
        self._indexes = order
        emit_info(
            EventType.sort_applied,
            f"Sorted {row_count} rows by column {column}",
            {"column": column, "row_count": row_count},
        )
        return True
