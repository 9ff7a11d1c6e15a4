"""I/O helpers — load worksheet grids, write JSON/text artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, cast
from zipfile import BadZipFile

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

Grid = list[list[Any]]

# Wide enough for the 15-column export plus any trailing note columns.
_CSV_MAX_COLUMNS = 64

# ── Loading ──────────────────────────────────────────────────────


def _trim_trailing_columns(df: pd.DataFrame) -> pd.DataFrame:
    used = [pos for pos, col in enumerate(df.columns) if df[col].notna().any()]
    return df.iloc[:, : used[-1] + 1] if used else df.iloc[:, :0]


def _frame_to_grid(df: pd.DataFrame) -> Grid:
    grid: Grid = []
    for row in df.astype(object).itertuples(index=False, name=None):
        grid.append([None if pd.isna(cell) else cell for cell in row])
    return grid


def _load_csv_grid(path: Path, delimiter: str) -> Grid:
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            df = pd.read_csv(
                path,
                header=None,
                names=list(range(_CSV_MAX_COLUMNS)),
                dtype="string",
                sep=delimiter,
                engine="c",
                encoding=encoding,
                encoding_errors="strict",
                skip_blank_lines=False,
                keep_default_na=False,
            )
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
            continue
        except pd.errors.EmptyDataError:
            return []
        return _frame_to_grid(_trim_trailing_columns(df.replace("", pd.NA)))
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def _load_xlsx_grid(path: Path) -> Grid:
    try:
        wb = load_workbook(path, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
        raise ValueError(f"Could not read workbook {path}: {exc}") from exc
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(min_row=1, values_only=True)]
    finally:
        wb.close()


def load_grid(path: Path, delimiter: str = ",") -> Grid:
    """Load the first worksheet of a CSV or Excel file as a 2-D list of cells.

    Leading title rows and blank rows are preserved so that row positions
    match the source sheet. Empty cells come back as ``None``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the extension is not supported or the file cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Input path is not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _load_csv_grid(path, delimiter)

    if suffix in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        return _load_xlsx_grid(path)

    if suffix == ".xls":
        try:
            read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
            df = read_excel(path, engine="xlrd", header=None, dtype=object)
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc
        return _frame_to_grid(df)

    raise ValueError(f"Unsupported file type: {suffix!r}. Use .csv, .xlsx, or .xls")


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_text(path: Path, text: str) -> Path:
    """Write *text* to *path* atomically (temp file + replace)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return write_text(path, payload)
