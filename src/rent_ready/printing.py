"""Printable HTML view of the dashboard (open in a browser, print to PDF)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, fields
from datetime import date, datetime, timezone
from html import escape
from pathlib import Path

from rent_ready.io import write_text
from rent_ready.models import Category, UnitRecord
from rent_ready.parsing import date_value_text, format_date

PRINT_FILENAME = "RR_Dashboard.html"

_STYLE = """
body { font-family: Calibri, Arial, sans-serif; font-size: 11px; margin: 24px; }
h1 { color: #2F5496; font-size: 18px; margin-bottom: 2px; }
.subtitle { color: #808080; margin-bottom: 16px; }
table { border-collapse: collapse; width: 100%; margin-bottom: 18px; }
th { background: #2F5496; color: #FFFFFF; text-align: left; padding: 4px 6px; }
td { border-bottom: 1px solid #D9D9D9; padding: 3px 6px; vertical-align: top; }
tr.flagged td { background: #FCE4D6; }
table.summary { width: auto; }
.num { text-align: right; }
@media print { body { margin: 0; } tr { page-break-inside: avoid; } }
"""


@dataclass(frozen=True)
class PrintColumns:
    """Which unit columns appear in the printed table."""

    unit_code: bool = True
    property: bool = True
    unit_description: bool = True
    rental_type: bool = False
    asking_rent: bool = True
    category: bool = True
    status: bool = True
    estimated_ready_date: bool = True
    actual_ready_date: bool = False
    rent_ready: bool = True
    days_until_ready: bool = True
    make_ready_notes: bool = False
    comments: bool = True
    has_issues: bool = True

    @classmethod
    def only(cls, names: Sequence[str]) -> PrintColumns:
        """Build a config that includes exactly *names*."""
        known = [f.name for f in fields(cls)]
        unknown = sorted(set(names) - set(known))
        if unknown:
            raise ValueError(
                f"Unknown print columns: {', '.join(unknown)}. Use any of: {', '.join(known)}"
            )
        return cls(**{name: name in names for name in known})

    def selected(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]


_COLUMN_LABELS: dict[str, str] = {
    "unit_code": "Unit",
    "property": "Property",
    "unit_description": "Description",
    "rental_type": "Rental Type",
    "asking_rent": "Asking Rent",
    "category": "Category",
    "status": "Status",
    "estimated_ready_date": "Est. Ready",
    "actual_ready_date": "Actual Ready",
    "rent_ready": "Rent Ready",
    "days_until_ready": "Days",
    "make_ready_notes": "Make Ready Notes",
    "comments": "Comments",
    "has_issues": "Issues",
}
_NUMERIC_COLUMNS = {"asking_rent", "days_until_ready"}


def _cell(unit: UnitRecord, name: str) -> str:
    if name == "asking_rent":
        return f"${unit.asking_rent:,.2f}"
    if name == "estimated_ready_date":
        return format_date(unit.estimated_ready_date) if unit.estimated_ready_date else ""
    if name == "actual_ready_date":
        return date_value_text(unit.actual_ready_date)
    if name == "category":
        return unit.category.value
    if name == "status":
        return unit.status.value
    if name == "days_until_ready":
        return "" if unit.days_until_ready is None else str(unit.days_until_ready)
    if name == "has_issues":
        return "⚠ Yes" if unit.has_issues else ""
    return str(getattr(unit, name))


def _summary_table(counts: dict[Category, int], total: int) -> list[str]:
    out = ['<table class="summary">', "<tr><th>Category</th><th>Units</th></tr>"]
    for category, count in counts.items():
        out.append(
            f'<tr><td>{escape(category.value)}</td><td class="num">{count}</td></tr>'
        )
    out.append(f'<tr><td><strong>Total</strong></td><td class="num">{total}</td></tr>')
    out.append("</table>")
    return out


def render_print_html(
    units: Sequence[UnitRecord],
    counts: dict[Category, int],
    columns: PrintColumns | None = None,
    *,
    title: str = "Rent Ready Dashboard",
    as_of: date | None = None,
) -> str:
    """Return a standalone HTML document for *units*, ready to print."""
    if columns is None:
        columns = PrintColumns()
    selected = columns.selected()

    subtitle = f"{len(units)} units"
    if as_of is not None:
        subtitle += f" | days counted from {as_of.isoformat()}"
    subtitle += f" | generated {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC"

    out: list[str] = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{escape(title)}</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        f"<h1>{escape(title)}</h1>",
        f'<div class="subtitle">{escape(subtitle)}</div>',
    ]
    out.extend(_summary_table(counts, len(units)))

    if selected:
        out.append('<table class="units">')
        header = "".join(f"<th>{escape(_COLUMN_LABELS[name])}</th>" for name in selected)
        out.append(f"<tr>{header}</tr>")
        for unit in units:
            row_class = ' class="flagged"' if unit.has_issues else ""
            cells = []
            for name in selected:
                css = ' class="num"' if name in _NUMERIC_COLUMNS else ""
                cells.append(f"<td{css}>{escape(_cell(unit, name))}</td>")
            out.append(f"<tr{row_class}>{''.join(cells)}</tr>")
        out.append("</table>")

    out.extend(["</body>", "</html>"])
    return "\n".join(out) + "\n"


def write_print_html(
    out_dir: Path,
    units: Sequence[UnitRecord],
    counts: dict[Category, int],
    columns: PrintColumns | None = None,
    *,
    as_of: date | None = None,
) -> Path:
    """Write ``RR_Dashboard.html`` into *out_dir* and return the path."""
    html = render_print_html(units, counts, columns, as_of=as_of)
    return write_text(Path(out_dir) / PRINT_FILENAME, html)
