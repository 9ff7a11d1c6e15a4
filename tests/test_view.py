"""Tests for filtering, sorting and tabulating units."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from conftest import AS_OF, report_grid, unit_row
from rent_ready import EXPORT_HEADERS
from rent_ready.models import Category, UnitRecord
from rent_ready.pipeline import extract_units
from rent_ready.view import (
    CATEGORY_RANK,
    DateField,
    SortSpec,
    UnitFilters,
    apply_filters,
    category_counts,
    default_sort_key,
    project,
    property_codes,
    records_to_frame,
    sort_units,
)


@pytest.fixture
def units(sample_grid: list[list[Any]]) -> list[UnitRecord]:
    return extract_units(sample_grid, as_of=AS_OF)


def _codes(units: list[UnitRecord]) -> list[str]:
    return [u.unit_code for u in units]


class TestFilters:
    def test_no_filters_keeps_everything(self, units: list[UnitRecord]) -> None:
        assert apply_filters(units) == units
        assert apply_filters(units, UnitFilters()) == units

    def test_property_substring_is_case_insensitive(self) -> None:
        grid = report_grid(
            unit_row("101", unit_type="0014t11c"),
            unit_row("201", unit_type="0022b10a"),
        )
        units = extract_units(grid, as_of=AS_OF)

        assert _codes(apply_filters(units, UnitFilters(property="14T"))) == ["101"]
        assert _codes(apply_filters(units, UnitFilters(property="2"))) == ["201"]

    def test_multi_property(self) -> None:
        grid = report_grid(
            unit_row("101", unit_type="0014t11c"),
            unit_row("201", unit_type="0022b10a"),
            unit_row("301", unit_type="0031c"),
        )
        units = extract_units(grid, as_of=AS_OF)

        kept = apply_filters(units, UnitFilters(properties=["14T", "31c"]))

        assert _codes(kept) == ["101", "301"]
        assert property_codes(units) == ["14t", "22b", "31c"]

    def test_category_exact(self, units: list[UnitRecord]) -> None:
        kept = apply_filters(units, UnitFilters(category=Category.READY_FLAGGED))
        assert _codes(kept) == ["103"]

    def test_category_accepts_value_string(self, units: list[UnitRecord]) -> None:
        kept = apply_filters(units, UnitFilters(category="Already Rented"))  # type: ignore[arg-type]
        assert _codes(kept) == ["104"]

    def test_rent_ready_exact(self, units: list[UnitRecord]) -> None:
        kept = apply_filters(units, UnitFilters(rent_ready="yes"))
        assert _codes(kept) == ["102", "103", "105"]

    def test_search_over_text_fields(self) -> None:
        grid = report_grid(
            unit_row("101", notes="Replace FRIDGE"),
            unit_row("102", job_code="fridge-22"),
            unit_row("103", comments="new carpet"),
            unit_row("104", vacate_type="fridge"),  # not a searched field
        )
        units = extract_units(grid, as_of=AS_OF)

        assert _codes(apply_filters(units, UnitFilters(search="Fridge"))) == ["101", "102"]
        assert _codes(apply_filters(units, UnitFilters(search="103"))) == ["103"]

    def test_rent_range_is_inclusive(self, units: list[UnitRecord]) -> None:
        kept = apply_filters(units, UnitFilters(min_rent=950, max_rent=950))
        assert _codes(kept) == ["102"]
        kept = apply_filters(units, UnitFilters(max_rent=100))
        assert _codes(kept) == ["108"]

    def test_flagged_only(self, units: list[UnitRecord]) -> None:
        kept = apply_filters(units, UnitFilters(flagged_only=True))
        assert _codes(kept) == ["103", "104", "105"]

    def test_estimated_date_range(self, units: list[UnitRecord]) -> None:
        filters = UnitFilters(date_from=date(2024, 1, 1), date_to=date(2024, 2, 29))
        assert _codes(apply_filters(units, filters)) == ["101", "106"]

    def test_actual_date_range(self, units: list[UnitRecord]) -> None:
        filters = UnitFilters(date_field=DateField.actual, date_from=date(2024, 1, 1))
        assert _codes(apply_filters(units, filters)) == ["102"]

    def test_filters_combine(self, units: list[UnitRecord]) -> None:
        filters = UnitFilters(rent_ready="yes", flagged_only=True, search="model")
        assert _codes(apply_filters(units, filters)) == ["105"]

    def test_invalid_ranges_rejected(self) -> None:
        with pytest.raises(ValueError, match="min_rent"):
            UnitFilters(min_rent=10, max_rent=5)
        with pytest.raises(ValueError, match="date_from"):
            UnitFilters(date_from=date(2024, 2, 1), date_to=date(2024, 1, 1))


class TestSorting:
    def test_default_sort_orders_by_category_then_bedrooms_then_rent(self) -> None:
        grid = report_grid(
            unit_row("101", description="2 Bedroom", rent="1500", estimated="1/10/2024"),
            unit_row("102", description="2 Bedroom", rent="1400", estimated="1/10/2024"),
            unit_row("103", description="Studio", rent="2000", estimated="1/10/2024"),
            unit_row("104", description="Studio", rent="500", future_move_in="2/1/2024"),
            unit_row("105", description="1 Bedroom", rent="900", rent_ready="yes", actual="1/1/2024"),
            unit_row("106", description="Penthouse", rent="100"),
        )
        units = extract_units(grid, as_of=AS_OF)

        assert _codes(sort_units(units)) == ["105", "103", "102", "101", "104", "106"]

    def test_category_rank_dominates(self) -> None:
        grid = report_grid(
            unit_row("101", description="Studio", rent="100"),  # Unknown
            unit_row("102", description="Penthouse", rent="9000", rent_ready="yes", actual="1/1/2024"),
        )
        units = extract_units(grid, as_of=AS_OF)

        assert _codes(sort_units(units)) == ["102", "101"]

    def test_rank_table_follows_category_order(self) -> None:
        assert [CATEGORY_RANK[c] for c in Category] == list(range(1, 9))
        assert CATEGORY_RANK[Category.UNKNOWN] == 8

    def test_default_key_shape(self, units: list[UnitRecord]) -> None:
        unit = next(u for u in units if u.unit_code == "107")
        assert default_sort_key(unit) == (5, 999, 1250.0)

    def test_explicit_sort_ascending_and_descending(self, units: list[UnitRecord]) -> None:
        asc = sort_units(units, SortSpec("asking_rent"))
        desc = sort_units(units, SortSpec("asking_rent", descending=True))

        assert asc[0].unit_code == "108"
        assert desc[-1].unit_code == "108"

    def test_explicit_sort_puts_missing_values_last(self, units: list[UnitRecord]) -> None:
        asc = sort_units(units, SortSpec("days_until_ready"))
        desc = sort_units(units, SortSpec("days_until_ready", descending=True))

        assert asc[-1].days_until_ready is None
        assert desc[-1].days_until_ready is None
        known = [u.days_until_ready for u in asc if u.days_until_ready is not None]
        assert known == sorted(known)

    def test_sort_by_category_uses_text(self, units: list[UnitRecord]) -> None:
        ordered = sort_units(units, SortSpec("category"))
        values = [u.category.value for u in ordered]
        assert values == sorted(values)

    def test_unknown_sort_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown sort field"):
            SortSpec("bedrooms")

    def test_project_leaves_input_untouched(self, units: list[UnitRecord]) -> None:
        before = list(units)
        shown = project(units, UnitFilters(flagged_only=True), SortSpec("unit_code", True))

        assert _codes(shown) == ["105", "104", "103"]
        assert units == before


class TestTabulation:
    def test_category_counts_in_rank_order(self, units: list[UnitRecord]) -> None:
        counts = category_counts(units)

        assert list(counts) == [c for c in Category]
        assert all(n == 1 for n in counts.values())

    def test_category_counts_omit_empty(self, units: list[UnitRecord]) -> None:
        counts = category_counts(u for u in units if u.has_issues)

        assert counts == {
            Category.READY_FLAGGED: 1,
            Category.ALREADY_RENTED: 1,
            Category.NOT_AVAILABLE: 1,
        }

    def test_records_to_frame(self, units: list[UnitRecord]) -> None:
        df = records_to_frame(units)

        assert list(df.columns) == EXPORT_HEADERS
        assert len(df) == len(units)
        row = df.iloc[1]
        assert row["Unit Code"] == "102"
        assert row["Actual Ready Date"] == "1/10/2024"
        assert row["Status"] == "Ready Now"
        assert row["Has Issues"] == "No"
        assert df.iloc[2]["Has Issues"] == "Yes"
        assert df.iloc[0]["Estimated Ready Date"] == "1/15/2024"
