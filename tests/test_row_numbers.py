"""Tests for the synthetic row-number column."""

from __future__ import annotations

import pytest

from multitable import ROW_NUMBER_BASE, AggregatedView, ListSource, TypeTag


@pytest.fixture
def source() -> ListSource:
    return ListSource({"v": [5, 9, 1], "w": ["p", "q", "r"]})


@pytest.fixture
def view(source: ListSource) -> AggregatedView:
    v = AggregatedView()
    v.add_source(source)
    v.set_row_number_visible(True)
    return v


class TestRowNumberColumn:
    def test_values_follow_real_rows(self, view: AggregatedView) -> None:
        assert [view.read_cell(r, 0) for r in range(3)] == [
            r + ROW_NUMBER_BASE for r in range(3)
        ]

    def test_metadata(self, view: AggregatedView) -> None:
        assert view.column_name(0) == "row"
        assert view.column_type(0) is TypeTag.INTEGER
        assert view.column_name(1) == "v"

    def test_shifts_data_columns(self, view: AggregatedView) -> None:
        assert view.get_value(1, 1) == 9
        assert view.get_value(2, 2) == "r"

    def test_read_only(self, view: AggregatedView, source: ListSource) -> None:
        assert view.write_cell(42, 0, 0) is False
        view.set_value(0, 0, 42)
        assert view.get_value(0, 0) == ROW_NUMBER_BASE
        assert source.get_value(0, 0) == 5

    def test_numbers_stay_with_rows_after_sort(self, view: AggregatedView) -> None:
        view.sort_by(1)  # v descending: real rows 1, 0, 2
        assert [view.get_value(r, 0) for r in range(3)] == [
            1 + ROW_NUMBER_BASE,
            0 + ROW_NUMBER_BASE,
            2 + ROW_NUMBER_BASE,
        ]

    def test_sort_by_row_number(self, view: AggregatedView) -> None:
        view.sort_by(0)
        assert view.sort_indexes == (2, 1, 0)

    def test_toggle_is_idempotent(self, view: AggregatedView) -> None:
        version = view.changes.total_version
        view.set_row_number_visible(True)
        assert view.changes.total_version == version
        view.set_row_number_visible(False)
        assert view.column_count() == 2
        assert view.column_name(0) == "v"

    def test_custom_name(self, source: ListSource) -> None:
        v = AggregatedView({"row_number_visible": True, "row_number_name": "#"})
        v.add_source(source)
        assert v.column_name(0) == "#"
