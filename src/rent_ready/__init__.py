"""rent-ready — Turn Rent Ready exports into classified, filterable unit reports."""

__version__ = "0.2.0"

RAW_COLUMNS: list[str] = [
    "unit_code",
    "unit_type",
    "unit_description",
    "rental_type",
    "vacant_as_of",
    "vacate_type",
    "future_move_in_date",
    "work_order",
    "asking_rent",
    "make_ready_notes",
    "estimated_ready_date",
    "rent_ready",
    "actual_ready_date",
    "job_code",
    "comments",
]
"""Field names for export columns A through O, in position order."""

EXPORT_HEADERS: list[str] = [
    "Unit Code",
    "Unit Type",
    "Unit Description",
    "Rental Type",
    "Vacant As Of",
    "Vacate Type",
    "Future Move In Date",
    "Work Order",
    "Asking Rent",
    "Make Ready Notes",
    "Estimated Ready Date",
    "Rent Ready",
    "Actual Ready Date",
    "Job Code",
    "Comments",
    "Property",
    "Category",
    "Status",
    "Days Until Ready",
    "Has Issues",
]
