"""Filtering, sorting and tabulating classified units for the dashboard views."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

import pandas as pd

from rent_ready import EXPORT_HEADERS
from rent_ready.models import Category, UnitRecord
from rent_ready.parsing import (
    coerce_date_value,
    date_value_text,
    extract_bedrooms,
    format_date,
)

CATEGORY_RANK: dict[Category, int] = {
    category: rank for rank, category in enumerate(Category, start=1)
}
UNRANKED = 999

SEARCH_FIELDS: tuple[str, ...] = (
    "unit_code",
    "unit_description",
    "rental_type",
    "make_ready_notes",
    "comments",
    "job_code",
)

SORTABLE_FIELDS: tuple[str, ...] = (
    "unit_code",
    "unit_type",
    "unit_description",
    "rental_type",
    "vacant_as_of",
    "vacate_type",
    "future_move_in_date",
    "work_order",
    "asking_rent",
    "make_ready_notes",
    "estimated_ready_date",
    "rent_ready",
    "actual_ready_date",
    "job_code",
    "comments",
    "property",
    "category",
    "status",
    "days_until_ready",
    "has_issues",
)


class DateField(str, Enum):
    estimated = "estimated"
    actual = "actual"


@dataclass
class UnitFilters:
    """Dashboard filters; unset fields do not filter."""

    property: str = ""
    properties: list[str] = field(default_factory=list)
    category: Category | None = None
    rent_ready: str = ""
    search: str = ""
    min_rent: float | None = None
    max_rent: float | None = None
    flagged_only: bool = False
    date_field: DateField = DateField.estimated
    date_from: date | None = None
    date_to: date | None = None

    def __post_init__(self) -> None:
        if self.category is not None and not isinstance(self.category, Category):
            self.category = Category(self.category)
        if not isinstance(self.date_field, DateField):
            self.date_field = DateField(self.date_field)
        if (
            self.min_rent is not None
            and self.max_rent is not None
            and self.min_rent > self.max_rent
        ):
            raise ValueError("min_rent must be <= max_rent")
        if (
            self.date_from is not None
            and self.date_to is not None
            and self.date_from > self.date_to
        ):
            raise ValueError("date_from must be <= date_to")

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "properties": list(self.properties),
            "category": self.category.value if self.category else None,
            "rent_ready": self.rent_ready,
            "search": self.search,
            "min_rent": self.min_rent,
            "max_rent": self.max_rent,
            "flagged_only": self.flagged_only,
            "date_field": self.date_field.value,
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
        }


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = False

    def __post_init__(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(
                f"Unknown sort field: {self.field!r}. Use one of: {', '.join(SORTABLE_FIELDS)}"
            )


# ── Filtering ────────────────────────────────────────────────────


def _unit_date(unit: UnitRecord, date_field: DateField) -> date | None:
    if date_field is DateField.actual:
        return coerce_date_value(unit.actual_ready_date)
    return unit.estimated_ready_date


def _matches(unit: UnitRecord, filters: UnitFilters) -> bool:
    if filters.property and filters.property.lower() not in unit.property.lower():
        return False
    if filters.properties:
        wanted = {p.lower() for p in filters.properties}
        if unit.property.lower() not in wanted:
            return False
    if filters.category is not None and unit.category is not filters.category:
        return False
    if filters.rent_ready and unit.rent_ready != filters.rent_ready:
        return False
    if filters.search:
        needle = filters.search.lower()
        if not any(needle in getattr(unit, name).lower() for name in SEARCH_FIELDS):
            return False
    if filters.min_rent is not None and unit.asking_rent < filters.min_rent:
        return False
    if filters.max_rent is not None and unit.asking_rent > filters.max_rent:
        return False
    if filters.flagged_only and not unit.has_issues:
        return False
    if filters.date_from is not None or filters.date_to is not None:
        unit_date = _unit_date(unit, filters.date_field)
        if unit_date is None:
            return False
        if filters.date_from is not None and unit_date < filters.date_from:
            return False
        if filters.date_to is not None and unit_date > filters.date_to:
            return False
    return True


def apply_filters(
    units: Iterable[UnitRecord], filters: UnitFilters | None = None
) -> list[UnitRecord]:
    """Return the units that pass every set filter, in input order."""
    if filters is None:
        return list(units)
    return [unit for unit in units if _matches(unit, filters)]


# ── Sorting ──────────────────────────────────────────────────────


def default_sort_key(unit: UnitRecord) -> tuple[int, int, float]:
    """Category priority, then bedrooms, then cheapest rent first."""
    return (
        CATEGORY_RANK.get(unit.category, UNRANKED),
        extract_bedrooms(unit.unit_description),
        unit.asking_rent,
    )


def _field_value(unit: UnitRecord, name: str) -> Any:
    value = getattr(unit, name)
    if name == "actual_ready_date":
        return date_value_text(value)
    if isinstance(value, Enum):
        return value.value
    return value


def sort_units(
    units: Iterable[UnitRecord], sort: SortSpec | None = None
) -> list[UnitRecord]:
    """Sort by an explicit field, or by the default dashboard ordering.

    Explicit sorts keep units with no value (``None``) at the end in either
    direction; both orderings are stable.
    """
    units = list(units)
    if sort is None:
        return sorted(units, key=default_sort_key)

    present = [u for u in units if _field_value(u, sort.field) is not None]
    missing = [u for u in units if _field_value(u, sort.field) is None]
    present.sort(key=lambda u: _field_value(u, sort.field), reverse=sort.descending)
    return present + missing


def project(
    units: Iterable[UnitRecord],
    filters: UnitFilters | None = None,
    sort: SortSpec | None = None,
) -> list[UnitRecord]:
    """Filter then sort; the input list is left untouched."""
    return sort_units(apply_filters(units, filters), sort)


# ── Tabulation ───────────────────────────────────────────────────


def category_counts(units: Iterable[UnitRecord]) -> dict[Category, int]:
    """Units per category, in category priority order; empty categories omitted."""
    counts = Counter(unit.category for unit in units)
    return {category: counts[category] for category in Category if counts[category]}


def property_codes(units: Iterable[UnitRecord]) -> list[str]:
    return sorted({unit.property for unit in units if unit.property})


def export_row(unit: UnitRecord) -> list[Any]:
    """One export row, in :data:`rent_ready.EXPORT_HEADERS` order."""
    return [
        unit.unit_code,
        unit.unit_type,
        unit.unit_description,
        unit.rental_type,
        unit.vacant_as_of,
        unit.vacate_type,
        unit.future_move_in_date,
        unit.work_order,
        unit.asking_rent,
        unit.make_ready_notes,
        format_date(unit.estimated_ready_date) if unit.estimated_ready_date else "",
        unit.rent_ready,
        date_value_text(unit.actual_ready_date),
        unit.job_code,
        unit.comments,
        unit.property,
        unit.category.value,
        unit.status.value,
        unit.days_until_ready,
        "Yes" if unit.has_issues else "No",
    ]


def records_to_frame(units: Sequence[UnitRecord]) -> pd.DataFrame:
    """Tabulate units into a DataFrame with the export columns."""
    return pd.DataFrame([export_row(unit) for unit in units], columns=EXPORT_HEADERS)
