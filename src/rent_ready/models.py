"""Data models / typed records used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from numbers import Integral
from typing import Any, Union


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Enumerations ─────────────────────────────────────────────────


class Category(str, Enum):
    """Lifecycle bucket of a unit, declared in dashboard priority order."""

    READY = "Available & Rent Ready"
    READY_FLAGGED = "Available & Rent Ready (Flagged)"
    NEXT_30_DAYS = "Available in Next 30 Days"
    NEXT_31_60_DAYS = "Available in Next 31-60 Days"
    BEYOND_60_DAYS = "Available in More than 60 Days"
    ALREADY_RENTED = "Already Rented"
    NOT_AVAILABLE = "Down/Hold/Model/Development"
    UNKNOWN = "Unknown"


class UnitStatus(str, Enum):
    RENTED = "Rented"
    NOT_AVAILABLE = "Not Available"
    READY_NOW = "Ready Now"
    FUTURE = "Future"


class UnitCodePattern(str, Enum):
    """Which first-cell shapes count as a unit code."""

    general = "general"  # letters, digits and hyphens
    strict = "strict"  # 2-4 digits only


# ── Actual ready date ────────────────────────────────────────────


@dataclass(frozen=True)
class KnownDate:
    value: date


@dataclass(frozen=True)
class RawDate:
    text: str


@dataclass(frozen=True)
class AbsentDate:
    pass


ABSENT = AbsentDate()

DateValue = Union[KnownDate, RawDate, AbsentDate]


# ── Configuration ────────────────────────────────────────────────


@dataclass(frozen=True)
class ExtractionConfig:
    """Row-extraction tunables; the defaults match the standard Rent Ready export."""

    header_offset: int = 6
    unit_code_pattern: UnitCodePattern = UnitCodePattern.general
    require_unit_data: bool = True
    flag_held_but_ready: bool = True

    def __post_init__(self) -> None:
        _to_non_negative_int(self.header_offset, "header_offset")
        if not isinstance(self.unit_code_pattern, UnitCodePattern):
            object.__setattr__(
                self, "unit_code_pattern", UnitCodePattern(self.unit_code_pattern)
            )


# ── Unit records ─────────────────────────────────────────────────


@dataclass(frozen=True)
class RawUnit:
    """Positional fields of one unit row (columns A-O) plus its property code."""

    unit_code: str
    unit_type: str
    unit_description: str
    rental_type: str
    vacant_as_of: str
    vacate_type: str
    future_move_in_date: str
    work_order: str
    asking_rent: float
    make_ready_notes: str
    estimated_ready_date: date | None
    rent_ready: str
    actual_ready_date: DateValue
    job_code: str
    comments: str
    property: str

    def __post_init__(self) -> None:
        if self.asking_rent < 0:
            raise ValueError("asking_rent must be >= 0")

    @property
    def is_rent_ready(self) -> bool:
        return self.rent_ready == "yes"

    @property
    def has_actual_ready_date(self) -> bool:
        return not isinstance(self.actual_ready_date, AbsentDate)

    @property
    def has_future_move_in(self) -> bool:
        return self.future_move_in_date.strip() != ""


@dataclass(frozen=True)
class UnitRecord(RawUnit):
    """A classified unit. Created once per unit row and never mutated."""

    category: Category
    status: UnitStatus
    days_until_ready: int | None
    has_issues: bool

    @classmethod
    def from_raw(
        cls,
        raw: RawUnit,
        *,
        category: Category,
        status: UnitStatus,
        days_until_ready: int | None,
        has_issues: bool,
    ) -> UnitRecord:
        values = {f.name: getattr(raw, f.name) for f in fields(RawUnit)}
        return cls(
            **values,
            category=category,
            status=status,
            days_until_ready=days_until_ready,
            has_issues=has_issues,
        )


# ── Run reports ──────────────────────────────────────────────────

_SKIP_COUNTERS = (
    "skipped_header",
    "skipped_blank",
    "skipped_total",
    "skipped_non_unit",
    "skipped_property_header",
)


@dataclass
class ExtractionReport:
    """Extraction counters and row-level warnings emitted alongside every run.

    Contract invariant: ``rows_scanned == units_out + skipped_rows``.
    """

    rows_scanned: int = 0
    units_out: int = 0
    skipped_header: int = 0
    skipped_blank: int = 0
    skipped_total: int = 0
    skipped_non_unit: int = 0
    skipped_property_header: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_scanned = _to_non_negative_int(self.rows_scanned, "rows_scanned")
        self.units_out = _to_non_negative_int(self.units_out, "units_out")
        for name in _SKIP_COUNTERS:
            setattr(self, name, _to_non_negative_int(getattr(self, name), name))
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.units_out > self.rows_scanned:
            raise ValueError("units_out must be <= rows_scanned")
        if self.units_out + self.skipped_rows != self.rows_scanned:
            raise ValueError("rows_scanned must equal units_out + skipped rows")

    @property
    def skipped_rows(self) -> int:
        return sum(getattr(self, name) for name in _SKIP_COUNTERS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_scanned": self.rows_scanned,
            "units_out": self.units_out,
            "skipped_header": self.skipped_header,
            "skipped_blank": self.skipped_blank,
            "skipped_total": self.skipped_total,
            "skipped_non_unit": self.skipped_non_unit,
            "skipped_property_header": self.skipped_property_header,
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single pipeline run."""

    tool: str = "rent-ready"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    as_of: str = ""
    rows_scanned: int = 0
    units_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_scanned = _to_non_negative_int(self.rows_scanned, "rows_scanned")
        self.units_out = _to_non_negative_int(self.units_out, "units_out")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "as_of": self.as_of,
            "rows_scanned": self.rows_scanned,
            "units_out": self.units_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
