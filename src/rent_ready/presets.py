"""Named filter presets saved to and loaded from JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from rent_ready.io import write_json
from rent_ready.utils import utcnow_iso
from rent_ready.view import UnitFilters

_NUMERIC_KEYS = ("min_rent", "max_rent")
_DATE_KEYS = ("date_from", "date_to")
_TEXT_KEYS = ("property", "rent_ready", "search")


class PresetError(ValueError):
    """Raised when a preset file cannot be read back into filters."""


@dataclass
class FilterPreset:
    name: str
    filters: UnitFilters = field(default_factory=UnitFilters)
    saved_at: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("preset name must be non-empty")
        if not self.saved_at:
            self.saved_at = utcnow_iso()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "filters": self.filters.to_dict(),
            "saved_at": self.saved_at,
        }


def _filters_from_dict(data: dict[str, Any]) -> UnitFilters:
    known = set(UnitFilters.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise PresetError(f"Unknown filter keys: {', '.join(unknown)}")

    values = dict(data)
    for key in _TEXT_KEYS:
        if values.get(key) is None:
            values.pop(key, None)
        elif not isinstance(values[key], str):
            raise PresetError(f"{key} must be a string")
    if "rent_ready" in values:
        values["rent_ready"] = values["rent_ready"].strip().lower()
    properties = values.get("properties")
    if properties is not None and (
        not isinstance(properties, list) or not all(isinstance(p, str) for p in properties)
    ):
        raise PresetError("properties must be a list of strings")
    if "flagged_only" in values and not isinstance(values["flagged_only"], bool):
        raise PresetError("flagged_only must be true or false")
    for key in _NUMERIC_KEYS:
        if values.get(key) is not None:
            if isinstance(values[key], bool) or not isinstance(values[key], (int, float)):
                raise PresetError(f"{key} must be a number")
            values[key] = float(values[key])
    for key in _DATE_KEYS:
        if values.get(key) is not None:
            try:
                values[key] = date.fromisoformat(str(values[key]))
            except ValueError as exc:
                raise PresetError(f"{key} must be an ISO date (YYYY-MM-DD)") from exc
    if values.get("properties") is None:
        values.pop("properties", None)
    try:
        return UnitFilters(**values)
    except (TypeError, ValueError) as exc:
        raise PresetError(f"Invalid filters: {exc}") from exc


def save_preset(path: Path, preset: FilterPreset) -> Path:
    """Write *preset* as JSON to *path* and return the path."""
    return write_json(path, preset.to_dict())


def load_preset(path: Path) -> FilterPreset:
    """Read a preset written by :func:`save_preset`.

    Raises
    ------
    PresetError
        If the file is missing, is not JSON, or does not describe valid filters.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise PresetError(f"Cannot read preset {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PresetError(f"Preset {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise PresetError(f"Preset {path} must contain a JSON object")
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise PresetError(f"Preset {path} has no name")
    filters = data.get("filters", {})
    if not isinstance(filters, dict):
        raise PresetError(f"Preset {path}: 'filters' must be an object")

    return FilterPreset(
        name=name,
        filters=_filters_from_dict(filters),
        saved_at=str(data.get("saved_at", "")),
    )
