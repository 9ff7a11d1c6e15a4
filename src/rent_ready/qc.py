"""Extraction report persistence."""

from __future__ import annotations

from pathlib import Path

from rent_ready.io import write_json
from rent_ready.models import ExtractionReport


def write_extraction_report(out_dir: Path, report: ExtractionReport) -> Path:
    """Write ``extraction_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "extraction_report.json", report.to_dict())
