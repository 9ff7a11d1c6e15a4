"""Unit classification — category, status, days until ready, issue flag.

Every function here is pure and total: the reference date is passed in and
no branch raises on odd field values.
"""

from __future__ import annotations

from datetime import date

from rent_ready.models import (
    Category,
    ExtractionConfig,
    RawUnit,
    UnitRecord,
    UnitStatus,
)
from rent_ready.parsing import coerce_date_value

NOT_AVAILABLE_KEYWORDS: tuple[str, ...] = ("development", "model", "hold", "down")

_STATUS_BY_CATEGORY: dict[Category, UnitStatus] = {
    Category.ALREADY_RENTED: UnitStatus.RENTED,
    Category.NOT_AVAILABLE: UnitStatus.NOT_AVAILABLE,
    Category.READY: UnitStatus.READY_NOW,
}


def _days_between(target: date, as_of: date) -> int:
    return (target - as_of).days


def _mentions_not_available(unit: RawUnit) -> bool:
    rental_type = unit.rental_type.lower()
    comments = unit.comments.lower()
    return any(
        keyword in rental_type or keyword in comments
        for keyword in NOT_AVAILABLE_KEYWORDS
    )


def categorize(unit: RawUnit, as_of: date) -> Category:
    """Assign the lifecycle category; the first matching rule wins."""
    if _mentions_not_available(unit):
        return Category.NOT_AVAILABLE

    if unit.has_future_move_in:
        return Category.ALREADY_RENTED

    if unit.is_rent_ready:
        if unit.has_actual_ready_date:
            return Category.READY
        return Category.READY_FLAGGED

    if unit.estimated_ready_date is not None:
        # Overdue units (negative days) land in the most urgent bucket.
        diff_days = _days_between(unit.estimated_ready_date, as_of)
        if diff_days <= 30:
            return Category.NEXT_30_DAYS
        if diff_days <= 60:
            return Category.NEXT_31_60_DAYS
        return Category.BEYOND_60_DAYS

    return Category.UNKNOWN


def unit_status(category: Category) -> UnitStatus:
    return _STATUS_BY_CATEGORY.get(category, UnitStatus.FUTURE)


def days_until_ready(unit: RawUnit, as_of: date) -> int | None:
    """Signed day count to the ready date (negative = overdue).

    Ready units with an actual ready date count from that date; when it cannot
    be read as a date, or in every other case, the estimated date is used.
    """
    if unit.is_rent_ready and unit.has_actual_ready_date:
        actual = coerce_date_value(unit.actual_ready_date)
        if actual is not None:
            return _days_between(actual, as_of)

    if unit.estimated_ready_date is None:
        return None
    return _days_between(unit.estimated_ready_date, as_of)


def has_issues(
    unit: RawUnit,
    category: Category,
    config: ExtractionConfig | None = None,
) -> bool:
    """Flag units whose ready status contradicts their dates or availability."""
    if config is None:
        config = ExtractionConfig()

    if unit.is_rent_ready and not unit.has_actual_ready_date:
        return True
    if unit.has_future_move_in and not unit.is_rent_ready:
        return True
    if (
        config.flag_held_but_ready
        and category is Category.NOT_AVAILABLE
        and unit.is_rent_ready
    ):
        return True
    return False


def classify(
    unit: RawUnit,
    as_of: date,
    config: ExtractionConfig | None = None,
) -> UnitRecord:
    """Attach the four derived fields to *unit*."""
    category = categorize(unit, as_of)
    return UnitRecord.from_raw(
        unit,
        category=category,
        status=unit_status(category),
        days_until_ready=days_until_ready(unit, as_of),
        has_issues=has_issues(unit, category, config),
    )
