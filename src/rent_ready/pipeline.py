"""Extraction + classification pipeline — pure functions, no side effects."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import date
from typing import Any

from rent_ready import RAW_COLUMNS
from rent_ready.classify import classify
from rent_ready.models import (
    ExtractionConfig,
    ExtractionReport,
    RawDate,
    RawUnit,
    UnitCodePattern,
    UnitRecord,
)
from rent_ready.parsing import (
    cell_text,
    coerce_date_value,
    extract_property,
    is_blank_row,
    parse_rent,
    parse_slash_date,
    to_date_value,
)

logger = logging.getLogger(__name__)

Grid = Sequence[Sequence[Any]]

UNIT_CODE_PATTERNS: dict[UnitCodePattern, re.Pattern[str]] = {
    UnitCodePattern.general: re.compile(r"^[A-Za-z0-9-]+$"),
    UnitCodePattern.strict: re.compile(r"^\d{2,4}$"),
}

_COL = {name: idx for idx, name in enumerate(RAW_COLUMNS)}


# ── Row helpers ─────────────────────────────────────────────────


def _pad_row(row: Sequence[Any]) -> list[Any]:
    cells = list(row[: len(RAW_COLUMNS)])
    cells.extend([None] * (len(RAW_COLUMNS) - len(cells)))
    return cells


def _is_total_row(first_cell: str) -> bool:
    return "total" in first_cell.lower()


def _has_unit_data(row: list[Any]) -> bool:
    """A property-header row repeats a code but carries no type/description/rent."""
    if not cell_text(row[_COL["unit_type"]]):
        return False
    if cell_text(row[_COL["unit_description"]]):
        return True
    rent = parse_rent(row[_COL["asking_rent"]])
    return rent is not None and rent > 0


def _row_to_raw_unit(row: list[Any], row_number: int, warnings: list[str]) -> RawUnit:
    """Map columns A-O positionally, normalising bad cells to safe defaults."""
    rent_cell = row[_COL["asking_rent"]]
    rent = parse_rent(rent_cell)
    if rent is None:
        if cell_text(rent_cell):
            warnings.append(
                f"Row {row_number}: unparseable asking rent {cell_text(rent_cell)!r}; using 0"
            )
        rent = 0.0
    elif rent < 0:
        warnings.append(f"Row {row_number}: negative asking rent {rent:g}; using 0")
        rent = 0.0

    estimated_cell = row[_COL["estimated_ready_date"]]
    estimated = parse_slash_date(estimated_cell)
    if estimated is None and cell_text(estimated_cell):
        warnings.append(
            f"Row {row_number}: unparseable estimated ready date "
            f"{cell_text(estimated_cell)!r}"
        )

    actual = to_date_value(row[_COL["actual_ready_date"]])
    if isinstance(actual, RawDate) and coerce_date_value(actual) is None:
        warnings.append(
            f"Row {row_number}: actual ready date {actual.text!r} is not a date"
        )

    return RawUnit(
        unit_code=cell_text(row[_COL["unit_code"]]),
        unit_type=cell_text(row[_COL["unit_type"]]),
        unit_description=cell_text(row[_COL["unit_description"]]),
        rental_type=cell_text(row[_COL["rental_type"]]),
        vacant_as_of=cell_text(row[_COL["vacant_as_of"]]),
        vacate_type=cell_text(row[_COL["vacate_type"]]),
        future_move_in_date=cell_text(row[_COL["future_move_in_date"]]),
        work_order=cell_text(row[_COL["work_order"]]),
        asking_rent=rent,
        make_ready_notes=cell_text(row[_COL["make_ready_notes"]]),
        estimated_ready_date=estimated,
        rent_ready=cell_text(row[_COL["rent_ready"]]).lower(),
        actual_ready_date=actual,
        job_code=cell_text(row[_COL["job_code"]]),
        comments=cell_text(row[_COL["comments"]]),
        property=extract_property(row[_COL["unit_type"]]),
    )


# ── Main extraction function ────────────────────────────────────


def extract(
    grid: Grid,
    *,
    as_of: date,
    config: ExtractionConfig | None = None,
) -> tuple[list[UnitRecord], ExtractionReport]:
    """Extract and classify unit rows from a raw worksheet grid.

    Returns ``(units, report)``. Rows are never fatal: anything that is not a
    unit row is counted and skipped, and odd cells inside unit rows fall back
    to defaults with a warning on the report.
    """
    if config is None:
        config = ExtractionConfig()
    code_re = UNIT_CODE_PATTERNS[config.unit_code_pattern]

    counts = {
        "skipped_header": 0,
        "skipped_blank": 0,
        "skipped_total": 0,
        "skipped_non_unit": 0,
        "skipped_property_header": 0,
    }
    warnings: list[str] = []
    units: list[UnitRecord] = []

    for idx, raw_row in enumerate(grid):
        row_number = idx + 1
        if idx < config.header_offset:
            counts["skipped_header"] += 1
            continue

        row = _pad_row(raw_row)
        if is_blank_row(list(raw_row)):
            counts["skipped_blank"] += 1
            continue

        first_cell = cell_text(row[0])
        if _is_total_row(first_cell):
            logger.debug("Row %d: skipping total row %r", row_number, first_cell)
            counts["skipped_total"] += 1
            continue

        if not code_re.match(first_cell):
            counts["skipped_non_unit"] += 1
            continue

        if config.require_unit_data and not _has_unit_data(row):
            logger.debug("Row %d: skipping property header %r", row_number, first_cell)
            counts["skipped_property_header"] += 1
            continue

        raw_unit = _row_to_raw_unit(row, row_number, warnings)
        units.append(classify(raw_unit, as_of, config))

    report = ExtractionReport(
        rows_scanned=len(grid),
        units_out=len(units),
        warnings=warnings,
        **counts,
    )
    if not units and report.rows_scanned > config.header_offset:
        report.warnings.append("No unit rows found after the header rows")

    logger.info(
        "Extracted %d units from %d rows (%d skipped)",
        report.units_out,
        report.rows_scanned,
        report.skipped_rows,
    )
    return units, report


def extract_units(
    grid: Grid,
    *,
    as_of: date,
    config: ExtractionConfig | None = None,
) -> list[UnitRecord]:
    """Like :func:`extract` but returns only the units."""
    units, _report = extract(grid, as_of=as_of, config=config)
    return units
