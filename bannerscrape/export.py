"""
CSV export.

One record per ExportRow under a fixed header. Booleans are written as
"true"/"false"; numbers that do not apply (unavailable rows) stay empty.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterable

from bannerscrape.model import ExportRow

CSV_COLUMNS = [
    "Subject",
    "CourseNumber",
    "Title",
    "CRN",
    "Section",
    "Term",
    "ScheduleType",
    "InstructionalMethod",
    "Days",
    "Time",
    "Location",
    "StartDate",
    "EndDate",
    "Instructor",
    "InstructorEmail",
    "Enrollment",
    "Capacity",
    "WaitCount",
    "WaitCapacity",
    "Open",
    "Available",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def row_to_record(row: ExportRow) -> list[str]:
    """
    Render one row in CSV_COLUMNS order.
    """
    values = [
        row.subject,
        row.number,
        row.title,
        row.crn,
        row.section,
        row.term,
        row.schedule_type,
        row.instructional_method,
        row.days,
        row.time,
        row.location,
        row.start_date,
        row.end_date,
        row.instructor,
        row.instructor_email,
        row.enrollment,
        row.capacity,
        row.wait_count,
        row.wait_capacity,
        row.open,
        row.available,
    ]
    return [_cell(v) for v in values]


def export_rows_to_csv(rows: Iterable[ExportRow], out_path: str | Path) -> int:
    """
    Write rows to a CSV file (overwriting it). Returns number of rows written.

    Rows are sorted by course, CRN and schedule so repeated runs produce the
    same file even though the batch collects rows in completion order.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    ordered = sorted(rows, key=lambda r: (r.subject, r.number, r.crn, r.days, r.time, r.location))

    with out.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(CSV_COLUMNS)
        for row in ordered:
            writer.writerow(row_to_record(row))

    return len(ordered)
