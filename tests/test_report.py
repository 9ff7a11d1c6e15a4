"""Tests for Excel export writing behavior and formatting contracts."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook

from conftest import AS_OF, report_grid, unit_row
from rent_ready import EXPORT_HEADERS
from rent_ready import report as report_mod
from rent_ready.io import load_grid
from rent_ready.models import ExtractionConfig, ExtractionReport, UnitRecord
from rent_ready.pipeline import extract, extract_units
from rent_ready.report import (
    CURRENCY_FMT,
    DATA_SHEET,
    FLAG_FILL,
    SUMMARY_SHEET,
    write_export,
)
from rent_ready.view import category_counts


def _export(tmp_path: Path, grid: list[list[Any]]) -> tuple[Path, list[UnitRecord]]:
    units, report = extract(grid, as_of=AS_OF)
    path = write_export(tmp_path, units, category_counts(units), as_of=AS_OF, report=report)
    return path, units


def _labels(ws: Any) -> list[Any]:
    return [ws.cell(row=r, column=1).value for r in range(1, ws.max_row + 1)]


def test_export_sheets_and_headers(tmp_path: Path, sample_grid: list[list[Any]]) -> None:
    path, units = _export(tmp_path, sample_grid)

    assert path == tmp_path / "RR_Dashboard.xlsx"
    wb = load_workbook(path)
    assert wb.sheetnames == [DATA_SHEET, SUMMARY_SHEET]

    ws = wb[DATA_SHEET]
    headers = [ws.cell(row=1, column=c).value for c in range(1, ws.max_column + 1)]
    assert headers == EXPORT_HEADERS
    assert ws.max_row == len(units) + 1
    assert ws.freeze_panes == "A2"
    assert len(ws.tables) == 1
    assert ws.auto_filter.ref is None
    assert not (tmp_path / "RR_Dashboard.tmp.xlsx").exists()


def test_export_cell_values(tmp_path: Path, sample_grid: list[list[Any]]) -> None:
    path, _units = _export(tmp_path, sample_grid)
    ws = load_workbook(path)[DATA_SHEET]
    col = {name: idx for idx, name in enumerate(EXPORT_HEADERS, 1)}

    # Row 3 is unit 102; row 4 is unit 103.
    assert ws.cell(row=3, column=col["Unit Code"]).value == "102"
    assert ws.cell(row=3, column=col["Asking Rent"]).value == 950
    assert ws.cell(row=3, column=col["Asking Rent"]).number_format == CURRENCY_FMT
    assert ws.cell(row=3, column=col["Actual Ready Date"]).value == "1/10/2024"
    assert ws.cell(row=3, column=col["Category"]).value == "Available & Rent Ready"
    assert ws.cell(row=3, column=col["Days Until Ready"]).value == 9
    assert ws.cell(row=3, column=col["Has Issues"]).value == "No"
    assert ws.cell(row=4, column=col["Has Issues"]).value == "Yes"
    assert ws.cell(row=4, column=col["Days Until Ready"]).value is None
    assert ws.cell(row=2, column=col["Estimated Ready Date"]).value == "1/15/2024"


def test_flagged_rows_are_highlighted(tmp_path: Path, sample_grid: list[list[Any]]) -> None:
    path, _units = _export(tmp_path, sample_grid)
    ws = load_workbook(path)[DATA_SHEET]

    flagged = ws.cell(row=4, column=1).fill
    assert flagged.fill_type == "solid"
    assert flagged.start_color.rgb[-6:] == FLAG_FILL.start_color.rgb[-6:]
    assert ws.cell(row=2, column=1).fill.fill_type is None


def test_formula_like_text_is_stored_as_text(tmp_path: Path) -> None:
    grid = report_grid(unit_row("101", notes="=HYPERLINK(\"x\")", comments="=1+1"))

    path, _units = _export(tmp_path, grid)
    ws = load_workbook(path)[DATA_SHEET]
    col = {name: idx for idx, name in enumerate(EXPORT_HEADERS, 1)}

    notes = ws.cell(row=2, column=col["Make Ready Notes"])
    assert notes.value == '=HYPERLINK("x")'
    assert notes.data_type == "s"
    assert ws.cell(row=2, column=col["Comments"]).data_type == "s"


def test_summary_sheet_lists_counts_and_warnings(
    tmp_path: Path, sample_grid: list[list[Any]]
) -> None:
    path, units = _export(tmp_path, sample_grid)
    ws = load_workbook(path)[SUMMARY_SHEET]
    labels = _labels(ws)

    assert ws.cell(row=1, column=1).value == "Rent Ready Dashboard"
    assert "2024-01-01" in ws.cell(row=2, column=1).value
    assert any(isinstance(v, str) and "unparseable asking rent" in v for v in labels)

    total_row = labels.index("Total Units") + 1
    assert ws.cell(row=total_row, column=2).value == len(units)
    flagged_row = labels.index("Flagged Units") + 1
    assert ws.cell(row=flagged_row, column=2).value == 3
    ready_row = labels.index("Available & Rent Ready") + 1
    assert ws.cell(row=ready_row, column=2).value == 1


def test_summary_caps_warning_lines(tmp_path: Path) -> None:
    report = ExtractionReport(warnings=[f"warning {i}" for i in range(30)])

    path = write_export(tmp_path, [], {}, as_of=AS_OF, report=report)
    labels = _labels(load_workbook(path)[SUMMARY_SHEET])

    shown = [v for v in labels if isinstance(v, str) and v.startswith("⚠ ")]
    assert len(shown) == 25
    assert "… 5 more warnings" in labels


def test_empty_export_has_headers_only(tmp_path: Path) -> None:
    path = write_export(tmp_path, [], {}, as_of=date(2024, 1, 1))
    wb = load_workbook(path)
    ws = wb[DATA_SHEET]

    assert ws.max_row == 1
    assert len(ws.tables) == 0
    assert "No warnings" in _labels(wb[SUMMARY_SHEET])


def test_export_reextracts_to_the_same_units(
    tmp_path: Path, sample_grid: list[list[Any]]
) -> None:
    path, units = _export(tmp_path, sample_grid)

    again = extract_units(
        load_grid(path), as_of=AS_OF, config=ExtractionConfig(header_offset=1)
    )

    assert again == units


def test_units_sheet_table_and_widths(tmp_path: Path, sample_grid: list[list[Any]]) -> None:
    path, units = _export(tmp_path, sample_grid)
    ws = load_workbook(path)[DATA_SHEET]

    (table,) = ws.tables.values()
    assert table.displayName == "RR_Dashboard"
    assert table.ref == f"A1:T{len(units) + 1}"
    assert ws.column_dimensions["A"].width == len("Unit Code") + 4
    assert all(ws.column_dimensions[c].width <= 40 for c in "ABCDEFGHIJKLMNOPQRST")


def test_column_width_ignores_missing_and_caps() -> None:
    assert report_mod._column_width(["Rent", None, float("nan")]) == 8
    assert report_mod._column_width(["x" * 100]) == 40
    assert report_mod._column_width([]) == 4


def test_cell_value_blanks_missing_values() -> None:
    assert report_mod._cell_value(float("nan")) is None
    assert report_mod._cell_value(pd.NA) is None
    assert report_mod._cell_value("101") == "101"
    assert report_mod._cell_value(950.0) == 950.0
