"""
Static course list (courses.json).

The file is an export of the Kuali catalog listing:

    [{"__catalogCourseId": "CSC110", "pid": "...", "title": "Fundamentals I",
      "subjectCode": {"name": "CSC", ...}}, ...]

Unlike the HTTP layer this loader is strict: a missing or broken file aborts
the run with a message that says what is wrong.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from bannerscrape.config import COURSES_FILE
from bannerscrape.errors import InputError, NotFoundError
from bannerscrape.model import CourseIdentifier


def split_catalog_id(catalog_id: str, subject: str) -> str:
    """
    'CSC110' + 'CSC' -> '110'. Ids that do not start with the subject are
    returned unchanged.
    """
    cid = catalog_id.strip().upper()
    subj = subject.strip().upper()
    if subj and cid.startswith(subj):
        return cid[len(subj):].strip()
    return cid


def _course_from_record(record: Any, index: int) -> CourseIdentifier:
    if not isinstance(record, dict):
        raise InputError(f"Course #{index} is not a JSON object")

    catalog_id = str(record.get("__catalogCourseId") or "").strip()
    subject_block = record.get("subjectCode")
    subject = ""
    if isinstance(subject_block, dict):
        subject = str(subject_block.get("name") or "").strip().upper()

    if not catalog_id or not subject:
        raise InputError(f"Course #{index} lacks '__catalogCourseId' or 'subjectCode.name'")

    return CourseIdentifier(
        subject=subject,
        number=split_catalog_id(catalog_id, subject),
        title=str(record.get("title") or "").strip(),
        catalog_id=catalog_id,
        pid=str(record.get("pid") or "").strip(),
    )


def load_course_list(path: str | Path = COURSES_FILE) -> list[CourseIdentifier]:
    """
    Load and validate the course list. Raises InputError on any problem.
    """
    course_path = Path(path)
    if not course_path.exists():
        raise InputError(f"Course list not found: {course_path}")

    try:
        data = json.loads(course_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Cannot read course list {course_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputError(f"Course list {course_path} is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise InputError(f"Course list {course_path} must contain a JSON array")

    return [_course_from_record(rec, i) for i, rec in enumerate(data)]


def find_course(courses: Iterable[CourseIdentifier], subject: str, number: str) -> CourseIdentifier:
    """
    Look up SUBJECT NUMBER (case-insensitive). Raises NotFoundError.
    """
    subj = subject.strip().upper()
    num = number.strip().upper()
    for c in courses:
        if c.subject == subj and c.number.upper() == num:
            return c
    raise NotFoundError(f"{subj} {num} is not in the course list")
