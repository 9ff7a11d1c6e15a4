"""Excel export writer — produces RR_Dashboard.xlsx."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from rent_ready.models import Category, ExtractionReport, UnitRecord
from rent_ready.parsing import is_missing
from rent_ready.view import records_to_frame

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
KPI_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")
FLAG_FILL = PatternFill(start_color="FCE4D6", end_color="FCE4D6", fill_type="solid")

CURRENCY_FMT = '#,##0.00'
INT_FMT = '#,##0'

EXPORT_FILENAME = "RR_Dashboard.xlsx"
DATA_SHEET = "RR Dashboard"
SUMMARY_SHEET = "Summary"

# Column-name → format mapping for the data sheet
_COL_FORMATS: dict[str, str] = {
    "Asking Rent": CURRENCY_FMT,
    "Days Until Ready": INT_FMT,
}
_TABLE_NAME = "RR_Dashboard"

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_SUMMARY_WARNINGS = 25


# ── Helpers ──────────────────────────────────────────────────────


def _column_width(values: list[Any]) -> float:
    sample = values[: _AUTO_WIDTH_SAMPLE_ROWS + 1]  # header plus sampled rows
    longest = max((len(str(v)) for v in sample if not is_missing(v)), default=0)
    return min(longest + 4, 40)


def _cell_value(val: Any) -> Any:
    return None if is_missing(val) else val


def _write_units_sheet(wb: Workbook, frame: pd.DataFrame) -> Worksheet:
    """Unit rows under a styled header, wrapped in an Excel table when non-empty."""
    ws = wb.create_sheet(title=DATA_SHEET)
    headers = list(frame.columns)
    flag_idx = headers.index("Has Issues") if "Has Issues" in headers else None

    for c_idx, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=c_idx, value=header)
        cell.font, cell.fill, cell.alignment = HEADER_FONT, HEADER_FILL, HEADER_ALIGN

    for r_idx, values in enumerate(frame.itertuples(index=False, name=None), 2):
        flagged = flag_idx is not None and values[flag_idx] == "Yes"
        for c_idx, (header, val) in enumerate(zip(headers, values), 1):
            cell = ws.cell(row=r_idx, column=c_idx, value=_cell_value(val))
            # Text is kept as text; a leading "=" must not turn into a formula.
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"
            fmt = _COL_FORMATS.get(header)
            if fmt:
                cell.number_format = fmt
            if flagged:
                cell.fill = FLAG_FILL

    for c_idx, header in enumerate(headers, 1):
        column = [header, *frame[header].tolist()]
        ws.column_dimensions[get_column_letter(c_idx)].width = _column_width(column)

    ws.freeze_panes = "A2"
    if len(frame) and headers:
        table = Table(
            displayName=_TABLE_NAME,
            ref=f"A1:{get_column_letter(len(headers))}{len(frame) + 1}",
        )
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9", showFirstColumn=False,
            showLastColumn=False, showRowStripes=True, showColumnStripes=False,
        )
        ws.add_table(table)
    return ws


def _write_summary(
    wb: Workbook,
    units: Sequence[UnitRecord],
    counts: dict[Category, int],
    report: ExtractionReport,
    as_of: date,
) -> None:
    ws = wb.create_sheet(title=SUMMARY_SHEET)

    # ── Title ────────────────────────────────────────────────────
    ws.cell(row=1, column=1, value="Rent Ready Dashboard").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(
        row=2, column=1, value=f"Generated {generated} | Days counted from {as_of.isoformat()}"
    ).font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")

    # ── Notes block (from extraction report) ─────────────────────
    row = 4
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    ws.cell(row=row, column=1).fill = NOTE_FILL
    ws.merge_cells(f"A{row}:D{row}")
    row += 1
    ws.cell(row=row, column=1, value=f"Rows scanned: {report.rows_scanned}")
    ws.cell(row=row, column=2, value=f"Units: {report.units_out}")
    ws.cell(row=row, column=3, value=f"Skipped: {report.skipped_rows}")
    for c in range(1, 5):
        ws.cell(row=row, column=c).fill = NOTE_FILL
    row += 1
    if report.warnings:
        for warn in report.warnings[:_MAX_SUMMARY_WARNINGS]:
            ws.cell(row=row, column=1, value=f"⚠ {warn}").font = WARN_FONT
            for c in range(1, 5):
                ws.cell(row=row, column=c).fill = NOTE_FILL
            row += 1
        hidden = len(report.warnings) - _MAX_SUMMARY_WARNINGS
        if hidden > 0:
            ws.cell(row=row, column=1, value=f"… {hidden} more warnings").font = WARN_FONT
            for c in range(1, 5):
                ws.cell(row=row, column=c).fill = NOTE_FILL
            row += 1
    else:
        ws.cell(row=row, column=1, value="No warnings").font = VALUE_FONT
        for c in range(1, 5):
            ws.cell(row=row, column=c).fill = NOTE_FILL
        row += 1

    # ── Category counts ──────────────────────────────────────────
    row += 1
    ws.cell(row=row, column=1, value="Units by Category").font = LABEL_FONT
    ws.merge_cells(f"A{row}:D{row}")
    for c in range(1, 5):
        ws.cell(row=row, column=c).fill = KPI_FILL
    row += 1

    flagged = sum(1 for unit in units if unit.has_issues)
    lines: list[tuple[str, int]] = [(cat.value, n) for cat, n in counts.items()]
    lines.append(("Total Units", len(units)))
    lines.append(("Flagged Units", flagged))
    for label, value in lines:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = KPI_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = KPI_FILL
        val_cell.number_format = INT_FMT
        val_cell.alignment = Alignment(horizontal="right")
        row += 1

    ws.column_dimensions["A"].width = 34
    ws.column_dimensions["B"].width = 16
    ws.column_dimensions["C"].width = 18
    ws.column_dimensions["D"].width = 18


# ── Public API ───────────────────────────────────────────────────


def write_export(
    out_dir: Path,
    units: Sequence[UnitRecord],
    counts: dict[Category, int],
    *,
    as_of: date,
    report: ExtractionReport | None = None,
) -> Path:
    """Write ``RR_Dashboard.xlsx`` and return the path.

    The unit sheet comes first so the export can be fed back into the
    extractor (with a one-row header offset).
    """
    if report is None:
        report = ExtractionReport(rows_scanned=len(units), units_out=len(units))

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    export_path = out_dir / EXPORT_FILENAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_units_sheet(wb, records_to_frame(units))
    _write_summary(wb, units, counts, report, as_of)

    tmp_path = out_dir / "RR_Dashboard.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(export_path)
    return export_path
