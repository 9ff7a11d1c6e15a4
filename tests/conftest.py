"""Shared builders for Rent Ready report grids."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

AS_OF = date(2024, 1, 1)

TITLE_ROWS: list[list[Any]] = [
    ["Rent Ready Report"],
    ["Generated 01/01/2024"],
    [],
    ["Property: All"],
    [],
    [
        "Unit", "Unit Type", "Unit Description", "Rental Type", "Vacant As Of",
        "Vacate Type", "Future Move In", "Work Order", "Asking Rent",
        "Make Ready Notes", "Est. Ready", "Rent Ready", "Actual Ready",
        "Job Code", "Comments",
    ],
]


def unit_row(
    code: Any = "101",
    unit_type: Any = "0014t11c",
    description: Any = "2 Bedroom Suite",
    rental_type: Any = "Standard",
    vacant_as_of: Any = "12/1/2023",
    vacate_type: Any = "Notice",
    future_move_in: Any = "",
    work_order: Any = "",
    rent: Any = "1,250.00",
    notes: Any = "",
    estimated: Any = "",
    rent_ready: Any = "No",
    actual: Any = "",
    job_code: Any = "",
    comments: Any = "",
) -> list[Any]:
    return [
        code, unit_type, description, rental_type, vacant_as_of, vacate_type,
        future_move_in, work_order, rent, notes, estimated, rent_ready, actual,
        job_code, comments,
    ]


def report_grid(*rows: list[Any]) -> list[list[Any]]:
    """Six title/header rows followed by *rows*."""
    return [list(r) for r in TITLE_ROWS] + [list(r) for r in rows]


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def sample_grid() -> list[list[Any]]:
    return report_grid(
        ["14T - Tower Court"],
        unit_row("101", estimated="1/15/2024"),
        unit_row(
            "102", description="Bachelor Suite", rent="$950", rent_ready="Yes",
            actual="1/10/2024",
        ),
        unit_row("103", description="1 Bedroom", rent_ready="yes", actual=""),
        unit_row("104", future_move_in="2/1/2024", rent_ready="no"),
        unit_row("105", rental_type="Model Suite", rent_ready="yes", actual="12/1/2023"),
        unit_row("106", description="3 Bedroom Townhouse", estimated="2/15/2024"),
        unit_row("107", description="Penthouse", estimated="6/1/2024"),
        unit_row("108", description="2 Bedroom", rent="n/a"),
        ["", "", "", "", ""],
        ["Total 14T", "", "", "", "", "", "", "", "4,200.00"],
    )
