"""Shared helpers — hashing, timestamps, reference dates."""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from pathlib import Path


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def resolve_as_of(value: str | None) -> date:
    """Parse a ``YYYY-MM-DD`` reference date, defaulting to today's local date."""
    if value is None or not value.strip():
        return date.today()
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid --as-of date: {value!r} (expected YYYY-MM-DD)") from exc
