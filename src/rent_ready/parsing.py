"""Cell-level parsing helpers — text, rent, dates, property codes, bedrooms."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

from rent_ready.models import ABSENT, AbsentDate, DateValue, KnownDate, RawDate

NO_BEDROOM_INFO = 999
"""Bedroom count for descriptions without bedroom info; sorts after everything."""

_PROPERTY_CODE_RE = re.compile(r"^(\d+[a-z]+)", re.IGNORECASE)
_BEDROOM_RE = re.compile(r"(\d+)[\s-]*bedroom", re.IGNORECASE)
_ZERO_BEDROOM_MARKERS = ("bachelor", "studio", "0 bedroom")

_CURRENCY_NOISE_RE = re.compile(r"[$€£,'_\s]")
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_FOUR_DIGIT_YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)")


# ── Cell rendering ───────────────────────────────────────────────


def is_missing(value: Any) -> bool:
    """True for ``None``, NaN, ``pd.NA`` and ``NaT``."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def format_date(value: date) -> str:
    """Render *value* as ``M/D/YYYY``."""
    return f"{value.month}/{value.day}/{value.year}"


def cell_text(value: Any) -> str:
    """Render a raw cell as trimmed text.

    Integral floats lose their ``.0`` (Excel hands back ``101`` as ``101.0``)
    and date cells are rendered as ``M/D/YYYY``.
    """
    if is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return format_date(value.date())
    if isinstance(value, date):
        return format_date(value)
    return str(value).strip()


def is_blank_row(row: list[Any]) -> bool:
    return all(cell_text(cell) == "" for cell in row)


# ── Rent ─────────────────────────────────────────────────────────


def parse_rent(value: Any) -> float | None:
    """Parse a currency-like cell into a float, or ``None`` when unparseable.

    Accepts ``1250``, ``"$1,250.00"``, ``"1 250"``, ``"(50)"`` (accounting
    negative) and leading-number text such as ``"1250/mo"``. Date cells are never
    read as rents.
    """
    if is_missing(value) or isinstance(value, (bool, date)):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
        return result if math.isfinite(result) else None

    token = str(value).strip()
    token = re.sub(r"^\((.*)\)$", r"-\1", token)
    token = _CURRENCY_NOISE_RE.sub("", token)
    match = _NUMBER_PREFIX_RE.match(token)
    if not match:
        return None
    result = float(match.group(0))
    return result if math.isfinite(result) else None


# ── Dates ────────────────────────────────────────────────────────


def parse_slash_date(value: Any) -> date | None:
    """Parse ``M/D/Y`` text into a date.

    Date and datetime cells are accepted as-is. Two-digit years are read as
    20YY. Anything else (wrong shape, non-numeric parts, impossible calendar
    dates, blanks) yields ``None``.
    """
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    parts = value.strip().split("/")
    if len(parts) != 3:
        return None
    try:
        month, day, year = (int(part) for part in parts)
    except ValueError:
        return None
    if 0 <= year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_date_value(value: Any) -> DateValue:
    """Wrap an actual-ready-date cell, keeping track of what kind of value it was."""
    if is_missing(value):
        return ABSENT
    if isinstance(value, datetime):
        return KnownDate(value.date())
    if isinstance(value, date):
        return KnownDate(value)
    text = cell_text(value)
    if not text:
        return ABSENT
    return RawDate(text)


def coerce_date_value(value: DateValue) -> date | None:
    """Resolve a DateValue to a calendar date, or ``None`` if it has none."""
    if isinstance(value, KnownDate):
        return value.value
    if isinstance(value, AbsentDate):
        return None

    parsed = parse_slash_date(value.text)
    if parsed is not None:
        return parsed
    # Free text must spell out its year; "Jan 5" would otherwise land in year 1.
    if not _FOUR_DIGIT_YEAR_RE.search(value.text):
        return None
    try:
        stamp = pd.to_datetime(value.text, errors="coerce")
    except (ValueError, OverflowError, TypeError):
        return None
    if is_missing(stamp):
        return None
    return stamp.date()


def date_value_text(value: DateValue) -> str:
    if isinstance(value, KnownDate):
        return format_date(value.value)
    if isinstance(value, RawDate):
        return value.text
    return ""


# ── Derived codes ────────────────────────────────────────────────


def extract_property(unit_type: Any) -> str:
    """Return the property code at the start of a unit type.

    Leading zeros are dropped, then a run of digits followed by letters is
    taken: ``"0014t11c"`` -> ``"14t"``. No match gives ``""``.
    """
    text = cell_text(unit_type).lstrip("0")
    match = _PROPERTY_CODE_RE.match(text)
    return match.group(1) if match else ""


def extract_bedrooms(description: str) -> int:
    """Bedroom count from a unit description; 0 for bachelor/studio suites."""
    desc = description.lower()
    match = _BEDROOM_RE.search(desc)
    if match:
        return int(match.group(1))
    if any(marker in desc for marker in _ZERO_BEDROOM_MARKERS):
        return 0
    return NO_BEDROOM_INFO
