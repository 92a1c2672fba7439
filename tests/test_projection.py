"""Tests for the sort projection and sorting through the view."""

from __future__ import annotations

import pytest

from multitable import (
    UNSORTED,
    AggregatedView,
    ListSource,
    LogicalIndexError,
    SortProjection,
    TypeTag,
    compare_descending,
    numeric_order,
)


# ────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────


@pytest.fixture
def numbers() -> ListSource:
    return ListSource({
        "n": [3, None, -5, 10, 3],
        "f": [0.5, 2.5, None, -1.0, 2.5],
        "s": ["b", None, "a", "b", "c"],
    })


@pytest.fixture
def view(numbers: ListSource) -> AggregatedView:
    v = AggregatedView()
    v.add_source(numbers)
    return v


def _column_values(view: AggregatedView, column: int) -> list:
    return [view.get_value(r, column) for r in range(view.row_count())]


# ────────────────────────────────────────────────────────────────
# Comparator
# ────────────────────────────────────────────────────────────────


class TestCompareDescending:
    def test_present_before_absent(self) -> None:
        assert compare_descending(1, None) < 0
        assert compare_descending(None, "a") > 0
        assert compare_descending(None, None) == 0

    def test_numbers_descending(self) -> None:
        assert compare_descending(2, 1) < 0
        assert compare_descending(1, 2.5) > 0
        assert compare_descending(2.0, 2) == 0

    def test_strings_descending(self) -> None:
        assert compare_descending("b", "a") < 0
        assert compare_descending("a", "b") > 0
        assert compare_descending("a", "a") == 0

    def test_mixed_falls_back_to_text(self) -> None:
        # "x" > "1" as text
        assert compare_descending("x", 1) < 0
        assert compare_descending(True, 1) < 0  # "True" > "1": bool is not numeric here


# ────────────────────────────────────────────────────────────────
# Projection state
# ────────────────────────────────────────────────────────────────


class TestSortProjection:
    def test_starts_unsorted_identity(self) -> None:
        p = SortProjection(4)
        assert p.indexes == (0, 1, 2, 3)
        assert p.sorted_column == UNSORTED

    def test_reset_is_identity(self, view: AggregatedView) -> None:
        view.sort_by(0)
        view.reset_sort()
        assert view.sorted_column() == -1
        assert all(view.sorted_row_of(i) == i for i in range(view.row_count()))

    def test_ensure_length(self) -> None:
        p = SortProjection(3)
        assert p.ensure_length(3) is False
        assert p.ensure_length(5) is True
        assert p.indexes == (0, 1, 2, 3, 4)

    def test_allocate_keeps_sort_key(self) -> None:
        p = SortProjection(2)
        p._sorted_column = 4
        p.allocate(3)
        assert p.sorted_column == 4
        assert p.indexes == (0, 1, 2)

    def test_sorted_row_of_missing(self) -> None:
        assert SortProjection(3).sorted_row_of(7) == -1


# ────────────────────────────────────────────────────────────────
# Numeric path
# ────────────────────────────────────────────────────────────────


class TestNumericSort:
    def test_integer_descending_absent_last(self, view: AggregatedView) -> None:
        assert view.sort_by(0) is True
        assert view.sort_indexes == (3, 0, 4, 2, 1)
        assert _column_values(view, 0) == [10, 3, 3, -5, None]

    def test_real_descending_absent_last(self, view: AggregatedView) -> None:
        view.sort_by(1)
        values = _column_values(view, 1)
        assert values == [2.5, 2.5, 0.5, -1.0, None]
        # Ties keep real-row order
        assert view.sort_indexes[:2] == (1, 4)

    def test_adjacent_order_property(self, view: AggregatedView) -> None:
        view.sort_by(0)
        values = _column_values(view, 0)
        present = [v for v in values if v is not None]
        assert values[: len(present)] == present
        assert all(a >= b for a, b in zip(present, present[1:]))

    def test_sort_records_column(self, view: AggregatedView) -> None:
        view.sort_by(1)
        assert view.sorted_column() == 1
        view.sort_by(0)
        assert view.sorted_column() == 0

    def test_sort_is_repeatable(self, view: AggregatedView) -> None:
        view.sort_by(1)
        first = view.sort_indexes
        view.reset_sort()
        view.sort_by(1)
        assert view.sort_indexes == first

    def test_resort_is_independent_of_previous_order(self, view: AggregatedView) -> None:
        view.sort_by(0)
        expected = view.sort_indexes
        view.sort_by(2)
        view.sort_by(0)
        assert view.sort_indexes == expected

    def test_bad_value_soft_fails(self) -> None:
        src = ListSource({"n": [1, "oops", 3]}, types=[TypeTag.INTEGER])
        v = AggregatedView()
        v.add_source(src)
        assert v.sort_by(0) is False
        assert sorted(v.sort_indexes) == [0, 1, 2]
        assert v.sort_indexes == (0, 1, 2)
        assert v.sorted_column() == 0

    def test_failed_sort_keeps_previous_permutation(self) -> None:
        src = ListSource({"n": [1, 2, 3], "m": [1, "oops", 3]}, types=[TypeTag.INTEGER, TypeTag.REAL])
        v = AggregatedView()
        v.add_source(src)
        v.sort_by(0)
        assert v.sort_by(1) is False
        assert v.sort_indexes == (2, 1, 0)

    def test_sorting_does_not_touch_sources(self, view: AggregatedView, numbers: ListSource) -> None:
        before = [numbers.get_value(r, 0) for r in range(5)]
        view.sort_by(0)
        assert [numbers.get_value(r, 0) for r in range(5)] == before

    def test_large_integers_keep_exact_order(self) -> None:
        v = AggregatedView()
        v.add_source(ListSource({"n": [2**53, 2**53 + 1, None, 2**53 - 1]}))
        assert v.sort_by(0) is True
        assert v.sort_indexes == (1, 0, 3, 2)
        assert _column_values(v, 0) == [2**53 + 1, 2**53, 2**53 - 1, None]

    def test_integers_and_reals_together(self) -> None:
        src = ListSource({"n": [1, 2.5, None, 3, 2]}, types=[TypeTag.REAL])
        v = AggregatedView()
        v.add_source(src)
        assert v.sort_by(0) is True
        assert _column_values(v, 0) == [3, 2.5, 2, 1, None]

    def test_integer_beyond_int64_soft_fails(self) -> None:
        v = AggregatedView()
        v.add_source(ListSource({"n": [1, 10**400]}, types=[TypeTag.INTEGER]))
        assert v.sort_by(0) is False
        assert v.sort_indexes == (0, 1)


class TestNumericOrder:
    def test_descending_stable_absent_last(self) -> None:
        assert numeric_order([2, None, 5, 2, 7]) == [4, 2, 0, 3, 1]

    def test_empty(self) -> None:
        assert numeric_order([]) == []

    def test_rejects_text(self) -> None:
        with pytest.raises(TypeError):
            numeric_order([1, "x"])


# ────────────────────────────────────────────────────────────────
# General path
# ────────────────────────────────────────────────────────────────


class TestGeneralSort:
    def test_string_scenario(self) -> None:
        v = AggregatedView()
        v.add_source(ListSource({"s": ["b", None, "a", "b"]}))
        v.sort_by(0)
        assert v.sort_indexes == (0, 3, 2, 1)

    def test_strings_with_absent(self, view: AggregatedView) -> None:
        view.sort_by(2)
        assert _column_values(view, 2) == ["c", "b", "b", "a", None]

    def test_mixed_values(self) -> None:
        v = AggregatedView()
        v.add_source(ListSource({"o": [1, 2.5, "x", None]}, types=[TypeTag.OTHER]))
        v.sort_by(0)
        assert v.sort_indexes == (2, 1, 0, 3)


# ────────────────────────────────────────────────────────────────
# Projection lifecycle in the view
# ────────────────────────────────────────────────────────────────


class TestProjectionLifecycle:
    def test_structural_change_reallocates(self, view: AggregatedView) -> None:
        view.sort_by(0)
        view.add_source(ListSource({"extra": [1, 2]}))
        assert view.sort_indexes == (0, 1, 2, 3, 4)
        # The recorded key survives; callers re-sort explicitly.
        assert view.sorted_column() == 0

    def test_row_growth_reallocates(self, view: AggregatedView, numbers: ListSource) -> None:
        view.sort_by(0)
        numbers.set_value(6, 0, 1)
        assert view.row_count() == 7
        assert view.sort_indexes == tuple(range(7))
        assert view.get_value(6, 0) == 1

    def test_visibility_change_reallocates(self, view: AggregatedView, numbers: ListSource) -> None:
        view.sort_by(0)
        view.set_column_visible(numbers, 2, False)
        assert view.sort_indexes == (0, 1, 2, 3, 4)

    def test_sort_out_of_range_column(self, view: AggregatedView) -> None:
        with pytest.raises(LogicalIndexError):
            view.sort_by(3)
        assert view.sorted_column() == -1

    def test_sorted_row_of(self, view: AggregatedView) -> None:
        view.sort_by(0)
        # real row 3 holds 10, the largest value
        assert view.sorted_row_of(3) == 0
        assert view.sorted_row_of(1) == 4
        assert view.sorted_row_of(99) == -1

    def test_empty_view_sort(self) -> None:
        v = AggregatedView()
        v.set_row_number_visible(True)
        assert v.sort_by(0) is True
        assert v.sort_indexes == ()
