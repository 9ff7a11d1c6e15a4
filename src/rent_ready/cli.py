"""CLI entry point for rent-ready."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from rent_ready import __version__
from rent_ready.formatter import to_html, to_plain_text
from rent_ready.io import load_grid, write_json, write_text
from rent_ready.models import (
    Category,
    ExtractionConfig,
    ExtractionReport,
    RunManifest,
    UnitCodePattern,
    UnitRecord,
)
from rent_ready.pipeline import extract
from rent_ready.presets import FilterPreset, PresetError, load_preset, save_preset
from rent_ready.printing import PrintColumns, write_print_html
from rent_ready.qc import write_extraction_report
from rent_ready.report import write_export
from rent_ready.utils import resolve_as_of, sha256_file, utcnow_iso
from rent_ready.view import (
    DateField,
    SortSpec,
    UnitFilters,
    category_counts,
    project,
    property_codes,
)

app = typer.Typer(
    name="rready",
    help="rent-ready — Turn Rent Ready exports into classified, filterable unit reports.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"rent-ready v{__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("rent_ready")
    logger.handlers.clear()
    if not verbose:
        logger.setLevel(logging.WARNING)
        return
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False


def _parse_date_option(value: str | None, option: str) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid {option} date: {value!r} (expected YYYY-MM-DD)") from exc


def _parse_category(value: str | None) -> Category | None:
    if value is None or not value.strip():
        return None
    wanted = value.strip().lower()
    for category in Category:
        if category.value.lower() == wanted:
            return category
    choices = "; ".join(c.value for c in Category)
    raise ValueError(f"Unknown category: {value!r}. Use one of: {choices}")


def _split_csv_option(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _build_config(
    *, header_offset: int, strict_codes: bool, unit_data_check: bool, flag_held_ready: bool
) -> ExtractionConfig:
    return ExtractionConfig(
        header_offset=header_offset,
        unit_code_pattern=UnitCodePattern.strict if strict_codes else UnitCodePattern.general,
        require_unit_data=unit_data_check,
        flag_held_but_ready=flag_held_ready,
    )


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    as_of: date | None,
    report: ExtractionReport,
    *,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        pass

    manifest = RunManifest(
        version=__version__,
        run_id=run_id,
        input_path=str(input_file.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        as_of=as_of.isoformat() if as_of else "",
        rows_scanned=report.rows_scanned,
        units_out=report.units_out,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    as_of: date | None,
    *,
    message: str,
    rows_scanned: int = 0,
    error_code: int = 2,
) -> typer.Exit:
    """Write failure artifacts, report the error and return the exit to raise."""
    report = ExtractionReport(
        rows_scanned=rows_scanned, skipped_non_unit=rows_scanned, warnings=[message]
    )
    report_path = write_extraction_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        run_id,
        created_at,
        as_of,
        report,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Report   -> {report_path}")
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _write_summary_artifact(
    *,
    out_dir: Path,
    input_file: Path,
    as_of: date,
    report: ExtractionReport,
    units: list[UnitRecord],
    shown: list[UnitRecord],
    max_warnings: int = 5,
) -> Path:
    lines: list[str] = [
        "rent-ready summary",
        f"tool_version: rent-ready v{__version__}",
        f"input_file: {input_file.name}",
        f"as_of: {as_of.isoformat()}",
        f"rows_scanned: {report.rows_scanned}",
        f"units: {report.units_out}",
        f"rows_skipped: {report.skipped_rows}",
        f"units_after_filters: {len(shown)}",
        f"flagged_units: {sum(1 for unit in units if unit.has_issues)}",
        f"properties: {', '.join(property_codes(units)) or 'N/A'}",
        f"warning_count: {len(report.warnings)}",
    ]
    for idx, warning in enumerate(report.warnings[:max_warnings], start=1):
        lines.append(f"warning_{idx}: {warning}")
    if len(report.warnings) > max_warnings:
        lines.append(f"warning_more: {len(report.warnings) - max_warnings}")
    for category, count in category_counts(units).items():
        lines.append(f"category: {category.value} = {count}")
    return write_text(out_dir / "summary.txt", "\n".join(lines) + "\n")


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """rent-ready CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the Rent Ready export (XLSX, XLS or CSV).",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for export, print view, report + manifest.",
    ),
    as_of: str | None = typer.Option(
        None, "--as-of",
        help="Reference date (YYYY-MM-DD) for day counts. Defaults to today.",
    ),
    header_offset: int = typer.Option(
        6, "--header-offset", min=0,
        help="Number of leading title rows to skip.",
    ),
    strict_codes: bool = typer.Option(
        False, "--strict-codes",
        help="Only accept 2-4 digit unit codes (older report layout).",
    ),
    unit_data_check: bool = typer.Option(
        True, "--unit-data-check/--no-unit-data-check",
        help="Skip code rows without unit type and description/rent (property headers).",
    ),
    flag_held_ready: bool = typer.Option(
        True, "--flag-held-ready/--no-flag-held-ready",
        help="Flag down/hold/model/development units that are marked rent ready.",
    ),
    delimiter: str = typer.Option(",", "--delimiter", help="CSV delimiter."),
    property_filter: str | None = typer.Option(
        None, "--property", help="Keep units whose property code contains this text."
    ),
    properties: str | None = typer.Option(
        None, "--properties", help="Comma-separated property codes to keep."
    ),
    category: str | None = typer.Option(None, "--category", help="Keep one category."),
    rent_ready: str | None = typer.Option(
        None, "--rent-ready", help="Keep units whose Rent Ready value matches (e.g. yes)."
    ),
    search: str | None = typer.Option(
        None, "--search", "-s",
        help="Text search over unit code, description, rental type, notes, comments, job code.",
    ),
    min_rent: float | None = typer.Option(None, "--min-rent", help="Minimum asking rent."),
    max_rent: float | None = typer.Option(None, "--max-rent", help="Maximum asking rent."),
    flagged_only: bool = typer.Option(False, "--flagged-only", help="Only flagged units."),
    date_field: DateField = typer.Option(
        DateField.estimated, "--date-field",
        help="Which ready date --date-from/--date-to apply to.",
    ),
    date_from: str | None = typer.Option(None, "--date-from", help="Earliest ready date."),
    date_to: str | None = typer.Option(None, "--date-to", help="Latest ready date."),
    sort_field: str | None = typer.Option(
        None, "--sort", help="Sort by a unit field instead of the default ordering."
    ),
    descending: bool = typer.Option(False, "--desc", help="Sort descending."),
    preset: Path | None = typer.Option(
        None, "--preset", help="Load filters from a saved preset (overrides filter options)."
    ),
    save_preset_path: Path | None = typer.Option(
        None, "--save-preset", help="Save the effective filters to this preset file."
    ),
    preset_name: str = typer.Option(
        "default", "--preset-name", help="Name stored with --save-preset."
    ),
    print_columns: str | None = typer.Option(
        None, "--columns", help="Comma-separated columns for the printable HTML view."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped rows."),
) -> None:
    """Extract, classify and export units from a Rent Ready report."""
    _setup_logging(verbose)
    echo = _printer(quiet)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        as_of_date = resolve_as_of(as_of)
        config = _build_config(
            header_offset=header_offset,
            strict_codes=strict_codes,
            unit_data_check=unit_data_check,
            flag_held_ready=flag_held_ready,
        )
        if preset is not None:
            filters = load_preset(preset).filters
        else:
            filters = UnitFilters(
                property=property_filter or "",
                properties=_split_csv_option(properties),
                category=_parse_category(category),
                rent_ready=(rent_ready or "").strip().lower(),
                search=search or "",
                min_rent=min_rent,
                max_rent=max_rent,
                flagged_only=flagged_only,
                date_field=date_field,
                date_from=_parse_date_option(date_from, "--date-from"),
                date_to=_parse_date_option(date_to, "--date-to"),
            )
        sort = SortSpec(sort_field, descending) if sort_field else None
        columns = (
            PrintColumns.only(_split_csv_option(print_columns)) if print_columns else None
        )
    except (ValueError, PresetError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, None, message=str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]rent-ready[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}\nAs of:  {as_of_date.isoformat()}",
            title="Pipeline Start", border_style="blue",
        ))
        if preset is not None:
            console.print(f"  Using preset: {preset}")

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading input file …")
    try:
        grid = load_grid(input_file, delimiter=delimiter)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, as_of_date, message=str(exc))

    echo(f"  {len(grid)} rows")

    try:
        if not grid:
            raise _fail(
                out_dir, input_file, run_id, created_at, as_of_date,
                message="Input file has 0 rows.",
            )

        # ── Extract + classify ───────────────────────────────────
        echo("[blue]>[/blue] Extracting units …")
        units, report = extract(grid, as_of=as_of_date, config=config)
        report_path = write_extraction_report(out_dir, report)
        echo(f"  Extraction report -> {report_path}")

        if not quiet:
            for w in report.warnings:
                console.print(f"  [yellow]![/yellow] {escape(w)}")
            console.print(f"  {report.units_out} units extracted")

        # ── Filter + sort ────────────────────────────────────────
        shown = project(units, filters, sort)
        counts = category_counts(shown)
        echo(f"  {len(shown)} units after filters")

        # ── Write artifacts ──────────────────────────────────────
        echo("[blue]>[/blue] Writing RR_Dashboard.xlsx …")
        export_path = write_export(out_dir, shown, counts, as_of=as_of_date, report=report)
        echo(f"  Export   -> {export_path}")

        html_path = write_print_html(out_dir, shown, counts, columns, as_of=as_of_date)
        echo(f"  Print    -> {html_path}")

        if save_preset_path is not None:
            preset_path = save_preset(
                save_preset_path, FilterPreset(name=preset_name, filters=filters)
            )
            echo(f"  Preset   -> {preset_path}")

        manifest_path = _write_manifest(
            out_dir, input_file, run_id, created_at, as_of_date, report
        )
        echo(f"  Manifest -> {manifest_path}")

        summary_path = _write_summary_artifact(
            out_dir=out_dir,
            input_file=input_file,
            as_of=as_of_date,
            report=report,
            units=units,
            shown=shown,
        )
        echo(f"  Summary  -> {summary_path}")

        if not quiet:
            tbl = RichTable(title="Units by Category")
            tbl.add_column("Category", style="bold")
            tbl.add_column("Units", justify="right")
            for cat, count in counts.items():
                tbl.add_row(cat.value, str(count))
            console.print(tbl)
            console.print(Panel(
                f"[green]Done[/green] — {len(shown)} units -> {export_path}",
                title="Pipeline Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir, input_file, run_id, created_at, as_of_date,
            message=f"Unexpected internal error: {exc}",
            rows_scanned=len(grid),
            error_code=1,
        )


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the Rent Ready export (XLSX, XLS or CSV).",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for extraction report + manifest.",
    ),
    as_of: str | None = typer.Option(
        None, "--as-of",
        help="Reference date (YYYY-MM-DD) for day counts. Defaults to today.",
    ),
    header_offset: int = typer.Option(
        6, "--header-offset", min=0,
        help="Number of leading title rows to skip.",
    ),
    strict_codes: bool = typer.Option(
        False, "--strict-codes",
        help="Only accept 2-4 digit unit codes (older report layout).",
    ),
    unit_data_check: bool = typer.Option(
        True, "--unit-data-check/--no-unit-data-check",
        help="Skip code rows without unit type and description/rent (property headers).",
    ),
    delimiter: str = typer.Option(",", "--delimiter", help="CSV delimiter."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes report + manifest.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped rows."),
) -> None:
    """Check that a file contains unit rows without producing the exports.

    Writes extraction_report.json + run_manifest.json only.
    Exit 0 = units found, exit 2 = unreadable file or no units.
    """
    _setup_logging(verbose)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        as_of_date = resolve_as_of(as_of)
    except ValueError as exc:
        raise _fail(out_dir, input_file, run_id, created_at, None, message=str(exc))
    config = _build_config(
        header_offset=header_offset,
        strict_codes=strict_codes,
        unit_data_check=unit_data_check,
        flag_held_ready=True,
    )

    if not quiet:
        console.print(Panel(
            f"[bold]rent-ready[/bold] v{__version__}  [dim]validate mode[/dim]\n"
            f"Input: {input_file}",
            title="Validate", border_style="cyan",
        ))

    try:
        grid = load_grid(input_file, delimiter=delimiter)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, as_of_date, message=str(exc))

    try:
        units, report = extract(grid, as_of=as_of_date, config=config)
        report_path = write_extraction_report(out_dir, report)

        status = "success"
        error_code: int | None = None
        error_message = ""
        if not units:
            status = "failed"
            error_code = 2
            error_message = "No unit rows found."
        manifest_path = _write_manifest(
            out_dir,
            input_file,
            run_id,
            created_at,
            as_of_date,
            report,
            status=status,
            error_code=error_code,
            error_message=error_message,
        )

        # ── Summary table ────────────────────────────────────────
        if not quiet:
            tbl = RichTable(title="Validation Summary", show_lines=True)
            tbl.add_column("Check", style="bold")
            tbl.add_column("Result")

            tbl.add_row("Rows scanned", str(report.rows_scanned))
            tbl.add_row("Units", str(report.units_out))
            tbl.add_row("Header rows", str(report.skipped_header))
            tbl.add_row("Blank rows", str(report.skipped_blank))
            tbl.add_row("Total rows", str(report.skipped_total))
            tbl.add_row("Property headers", str(report.skipped_property_header))
            tbl.add_row("Other rows", str(report.skipped_non_unit))
            tbl.add_row("Flagged units", str(sum(1 for u in units if u.has_issues)))

            for w in report.warnings:
                tbl.add_row("Warning", f"[yellow]{escape(w)}[/yellow]")

            tbl.add_row("Status", "[green]PASS[/green]" if units else "[red]FAIL[/red]")
            console.print(tbl)
        console.print(f"  Report   -> {report_path}")
        console.print(f"  Manifest -> {manifest_path}")

        if not units:
            _err("No unit rows found.")
            console.print(
                f"  Hint: check --header-offset (currently {header_offset}) "
                "or try without --strict-codes"
            )
            raise typer.Exit(code=2)
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir, input_file, run_id, created_at, as_of_date,
            message=f"Unexpected internal error: {exc}",
            rows_scanned=len(grid),
            error_code=1,
        )


# ── format command ───────────────────────────────────────────────


@app.command("format")
def format_text(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Markup text file to convert.",
        exists=True, readable=True,
    ),
    plain: bool = typer.Option(False, "--plain", help="Emit plain text instead of HTML."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout."
    ),
) -> None:
    """Convert email markup (headings, bullets, bold, links) to HTML or plain text."""
    try:
        text = input_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _err(f"Cannot read {input_file}: {exc}")
        raise typer.Exit(code=2)

    rendered = to_plain_text(text) if plain else to_html(text)
    if output is None:
        typer.echo(rendered)
        return
    write_text(output, rendered + "\n")
    console.print(f"  Output -> {output}")
