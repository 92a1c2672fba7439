"""Tabular data sources consumed by the aggregated view.

Any object with the methods of :class:`DataSource` can be registered with a
view; nothing here is a required base class.  Two concrete sources are
provided: an in-memory column-list source and a Polars DataFrame source.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

import polars as pl


class TypeTag(str, Enum):
    """Value type of a column, as reported by a source."""

    INTEGER = "integer"
    REAL = "real"
    STRING = "string"
    OTHER = "other"


def is_numeric(tag: TypeTag) -> bool:
    return tag in (TypeTag.INTEGER, TypeTag.REAL)


def tag_for_value(value: Any) -> TypeTag:
    """Infer a type tag from a single Python value."""
    if isinstance(value, bool):
        return TypeTag.OTHER
    if isinstance(value, int):
        return TypeTag.INTEGER
    if isinstance(value, float):
        return TypeTag.REAL
    if isinstance(value, str):
        return TypeTag.STRING
    return TypeTag.OTHER


def tag_for_dtype(dtype: pl.DataType) -> TypeTag:
    """Map a Polars dtype onto a type tag."""
    if dtype.is_integer():
        return TypeTag.INTEGER
    if dtype.is_float():
        return TypeTag.REAL
    if dtype == pl.Utf8:
        return TypeTag.STRING
    return TypeTag.OTHER


@runtime_checkable
class DataSource(Protocol):
    """Row/column data provider.

    ``get_value`` returns ``None`` for an absent value.  ``set_value`` may
    be a no-op for read-only sources.
    """

    def row_count(self) -> int: ...

    def column_count(self) -> int: ...

    def column_name(self, column: int) -> str: ...

    def column_type(self, column: int) -> TypeTag: ...

    def get_value(self, row: int, column: int) -> Any: ...

    def set_value(self, row: int, column: int, value: Any) -> None: ...


# ────────────────────────────────────────────────────────────────
# In-memory source
# ────────────────────────────────────────────────────────────────


class ListSource:
    """A source backed by a mapping of column name to list of values.

    Columns may have different lengths; the row count is that of the
    longest column and shorter columns read ``None`` past their end.
    """

    def __init__(
        self,
        columns: Mapping[str, Sequence[Any]],
        types: Sequence[TypeTag] | None = None,
        *,
        read_only: bool = False,
    ) -> None:
        """Initialize a list source.

        Args:
            columns: Ordered mapping of column name to values.
            types: Explicit type tags, one per column.  Inferred from the
                present values of each column when omitted.
            read_only: If true, ``set_value`` ignores writes.
        """
        self._names = list(columns.keys())
        self._columns = [list(values) for values in columns.values()]
        if types is not None:
            if len(types) != len(self._names):
                raise ValueError(
                    f"Expected {len(self._names)} type tags, got {len(types)}"
                )
            self._types = [TypeTag(t) for t in types]
        else:
            self._types = [self._infer(values) for values in self._columns]
        self.read_only = read_only

    @staticmethod
    def _infer(values: list[Any]) -> TypeTag:
        tags = {tag_for_value(v) for v in values if v is not None}
        if not tags:
            return TypeTag.OTHER
        if len(tags) == 1:
            return tags.pop()
        # ints widen to REAL alongside floats
        if tags == {TypeTag.INTEGER, TypeTag.REAL}:
            return TypeTag.REAL
        return TypeTag.OTHER

    def row_count(self) -> int:
        return max((len(values) for values in self._columns), default=0)

    def column_count(self) -> int:
        return len(self._names)

    def column_name(self, column: int) -> str:
        return self._names[column]

    def column_type(self, column: int) -> TypeTag:
        return self._types[column]

    def get_value(self, row: int, column: int) -> Any:
        values = self._columns[column]
        if row >= len(values):
            return None
        return values[row]

    def set_value(self, row: int, column: int, value: Any) -> None:
        if self.read_only:
            return
        values = self._columns[column]
        if row >= len(values):
            values.extend([None] * (row + 1 - len(values)))
        values[row] = value

    def __repr__(self) -> str:
        return f"ListSource(columns={self._names!r}, rows={self.row_count()})"


# ────────────────────────────────────────────────────────────────
# Polars source
# ────────────────────────────────────────────────────────────────


class FrameSource:
    """A source backed by a Polars DataFrame.

    Writes replace the target column with an updated copy of the same
    dtype, so the frame held by the caller is never mutated.
    """

    def __init__(self, frame: pl.DataFrame, *, read_only: bool = False) -> None:
        self.frame = frame
        self.read_only = read_only

    def row_count(self) -> int:
        return self.frame.height

    def column_count(self) -> int:
        return self.frame.width

    def column_name(self, column: int) -> str:
        return self.frame.columns[column]

    def column_type(self, column: int) -> TypeTag:
        return tag_for_dtype(self.frame.dtypes[column])

    def get_value(self, row: int, column: int) -> Any:
        return self.frame.item(row, column)

    def set_value(self, row: int, column: int, value: Any) -> None:
        if self.read_only:
            return
        series = self.frame.to_series(column)
        values = series.to_list()
        values[row] = value
        self.frame = self.frame.with_columns(
            pl.Series(series.name, values, dtype=series.dtype)
        )

    def __repr__(self) -> str:
        return f"FrameSource(shape={self.frame.shape})"


# ────────────────────────────────────────────────────────────────
# Snapshot
# ────────────────────────────────────────────────────────────────

_POLARS_DTYPES = {
    TypeTag.INTEGER: pl.Int64,
    TypeTag.REAL: pl.Float64,
    TypeTag.STRING: pl.Utf8,
}


def _is_plain_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _unique_names(names: list[str]) -> list[str]:
    seen: dict[str, int] = {}
    out: list[str] = []
    for name in names:
        count = seen.get(name, 0) + 1
        seen[name] = count
        out.append(name if count == 1 else f"{name}_{count}")
    return out


def snapshot_frame(source: DataSource) -> pl.DataFrame:
    """Materialize *source* into a DataFrame, row by row in source order.

    For an aggregated view this is the sorted, filtered logical table.
    Duplicate column names get ``_2``, ``_3``, ... suffixes.  Numeric and
    string columns get a matching dtype and reject values that do not fit
    it.  Other columns take the dtype Polars infers, or stay Python objects
    when their values share no dtype.
    """
    n_rows = source.row_count()
    n_cols = source.column_count()
    names = _unique_names([str(source.column_name(c)) for c in range(n_cols)])
    series = []
    for c, name in enumerate(names):
        values = [source.get_value(r, c) for r in range(n_rows)]
        dtype = _POLARS_DTYPES.get(source.column_type(c))
        if dtype is pl.Float64:
            values = [float(v) if _is_plain_int(v) else v for v in values]
        if dtype is not None:
            series.append(pl.Series(name, values, dtype=dtype))
            continue
        try:
            series.append(pl.Series(name, values))
        except (TypeError, OverflowError):
            series.append(pl.Series(name, values, dtype=pl.Object))
    return pl.DataFrame(series)
