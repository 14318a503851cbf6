"""
Central data model definitions used across the project.

This module defines the canonical structure of the objects that flow from the
HTTP clients through the batch pipeline into the exporters:

- CourseIdentifier: one entry of courses.json
- CourseSection / MeetingOccurrence / InstructorAssignment: Banner data
- CatalogInfo: Kuali catalog data
- ExportRow: one flattened CSV record

The from_json constructors map the raw payload keys; missing keys become
empty values instead of errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

# Banner day flags in week order, with the letter used in schedules.
# Weekend flags exist in the payload but are not represented.
WEEKDAYS = (
    ("monday", "M"),
    ("tuesday", "T"),
    ("wednesday", "W"),
    ("thursday", "R"),
    ("friday", "F"),
)


def _safe_str(x: Any) -> str:
    return "" if x is None else str(x).strip()


def _safe_int(x: Any) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return 0


def _safe_float(x: Any) -> Optional[float]:
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def format_clock(hhmm: str) -> str:
    """
    Convert Banner's 24-hour 'HHMM' to 'HH:MM'. Anything else is returned as-is.
    """
    raw = _safe_str(hhmm)
    if len(raw) == 4 and raw.isdigit():
        return f"{raw[:2]}:{raw[2:]}"
    return raw


@dataclass(frozen=True)
class CourseIdentifier:
    """
    Represents one course of the static course list (courses.json).
    """

    subject: str
    number: str
    title: str = ""
    catalog_id: str = ""
    pid: str = ""

    @property
    def code(self) -> str:
        return f"{self.subject} {self.number}"


@dataclass
class InstructorAssignment:
    name: str
    email: str = ""
    primary: bool = False

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "InstructorAssignment":
        return cls(
            name=_safe_str(data.get("displayName")),
            email=_safe_str(data.get("emailAddress")),
            primary=bool(data.get("primaryIndicator")),
        )


@dataclass
class MeetingOccurrence:
    """
    One scheduled meeting pattern of a section (one 'meetingsFaculty' entry).
    """

    days: tuple[bool, ...] = (False, False, False, False, False)
    begin_time: str = ""
    end_time: str = ""
    building: str = ""
    building_description: str = ""
    room: str = ""
    start_date: str = ""
    end_date: str = ""
    meeting_type: str = ""
    meeting_type_description: str = ""
    instructors: List[InstructorAssignment] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "MeetingOccurrence":
        mt = data.get("meetingTime") or {}
        faculty = data.get("faculty") or []
        return cls(
            days=tuple(bool(mt.get(key)) for key, _ in WEEKDAYS),
            begin_time=_safe_str(mt.get("beginTime")),
            end_time=_safe_str(mt.get("endTime")),
            building=_safe_str(mt.get("building")),
            building_description=_safe_str(mt.get("buildingDescription")),
            room=_safe_str(mt.get("room")),
            start_date=_safe_str(mt.get("startDate")),
            end_date=_safe_str(mt.get("endDate")),
            meeting_type=_safe_str(mt.get("meetingType")),
            meeting_type_description=_safe_str(mt.get("meetingTypeDescription")),
            instructors=[InstructorAssignment.from_json(f) for f in faculty if isinstance(f, dict)],
        )

    @property
    def day_codes(self) -> str:
        return "".join(letter for (_, letter), on in zip(WEEKDAYS, self.days) if on)

    @property
    def time_range(self) -> str:
        if not (self.begin_time and self.end_time):
            return ""
        return f"{format_clock(self.begin_time)}-{format_clock(self.end_time)}"

    @property
    def location(self) -> str:
        return " ".join(p for p in (self.building, self.room) if p)

    @property
    def date_range(self) -> str:
        if self.start_date and self.end_date:
            return f"{self.start_date} - {self.end_date}"
        return self.start_date or self.end_date

    @property
    def primary_instructor(self) -> Optional[InstructorAssignment]:
        for instr in self.instructors:
            if instr.primary:
                return instr
        return self.instructors[0] if self.instructors else None


@dataclass
class CourseSection:
    """
    One registration-system section of a course, keyed by CRN within a term.
    """

    crn: str
    section: str = ""
    term: str = ""
    subject: str = ""
    number: str = ""
    title: str = ""
    schedule_type: str = ""
    instructional_method: str = ""
    capacity: int = 0
    enrollment: int = 0
    seats_available: int = 0
    wait_capacity: int = 0
    wait_count: int = 0
    credit_hours: Optional[float] = None
    open: bool = False

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CourseSection":
        return cls(
            crn=_safe_str(data.get("courseReferenceNumber")),
            section=_safe_str(data.get("sequenceNumber")),
            term=_safe_str(data.get("term")),
            subject=_safe_str(data.get("subject")),
            number=_safe_str(data.get("courseNumber")),
            title=_safe_str(data.get("courseTitle")),
            schedule_type=_safe_str(data.get("scheduleTypeDescription")),
            instructional_method=_safe_str(data.get("instructionalMethodDescription")),
            capacity=_safe_int(data.get("maximumEnrollment")),
            enrollment=_safe_int(data.get("enrollment")),
            seats_available=_safe_int(data.get("seatsAvailable")),
            wait_capacity=_safe_int(data.get("waitCapacity")),
            wait_count=_safe_int(data.get("waitCount")),
            credit_hours=_safe_float(data.get("creditHours")),
            open=bool(data.get("openSection")),
        )


@dataclass
class CatalogInfo:
    """
    Descriptive catalog metadata (Kuali), independent of the term.

    description / prerequisites / supplemental_notes keep their HTML markup;
    use bannerscrape.text.html_to_text for display.
    """

    pid: str
    catalog_course_id: str = ""
    title: str = ""
    description: str = ""
    prerequisites: str = ""
    supplemental_notes: str = ""
    credits: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CatalogInfo":
        return cls(
            pid=_safe_str(data.get("pid")),
            catalog_course_id=_safe_str(data.get("__catalogCourseId")),
            title=_safe_str(data.get("title")),
            description=_safe_str(data.get("description")),
            prerequisites=_safe_str(data.get("preAndCorequisites") or data.get("prerequisites")),
            supplemental_notes=_safe_str(data.get("supplementalNotes")),
            credits=_credits_text(data.get("credits")),
        )


def _credits_text(credits: Any) -> str:
    """
    Kuali credits look like {"credits": {"min": "1.5", "max": "3"}, "value": "1.5"}.
    """
    if not isinstance(credits, dict):
        return _safe_str(credits)
    value = credits.get("value")
    if value and not isinstance(value, dict):
        return _safe_str(value)
    rng = credits.get("credits") or {}
    lo = _safe_str(rng.get("min"))
    hi = _safe_str(rng.get("max"))
    if lo and hi and lo != hi:
        return f"{lo}-{hi}"
    return lo or hi


@dataclass(frozen=True)
class ExportRow:
    """
    One flattened CSV record: course x section x meeting occurrence.

    Rows are write-once; build them with from_meeting() or unavailable().
    """

    subject: str
    number: str
    title: str
    crn: str = ""
    section: str = ""
    term: str = ""
    schedule_type: str = ""
    instructional_method: str = ""
    days: str = ""
    time: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    instructor: str = ""
    instructor_email: str = ""
    enrollment: Optional[int] = None
    capacity: Optional[int] = None
    wait_count: Optional[int] = None
    wait_capacity: Optional[int] = None
    open: Optional[bool] = None
    available: bool = False

    @classmethod
    def from_meeting(
        cls, course: CourseIdentifier, section: CourseSection, meeting: MeetingOccurrence
    ) -> "ExportRow":
        instr = meeting.primary_instructor
        return cls(
            subject=course.subject,
            number=course.number,
            title=course.title or section.title,
            crn=section.crn,
            section=section.section,
            term=section.term,
            schedule_type=section.schedule_type,
            instructional_method=section.instructional_method,
            days=meeting.day_codes,
            time=meeting.time_range,
            location=meeting.location,
            start_date=meeting.start_date,
            end_date=meeting.end_date,
            instructor=instr.name if instr else "",
            instructor_email=instr.email if instr else "",
            enrollment=section.enrollment,
            capacity=section.capacity,
            wait_count=section.wait_count,
            wait_capacity=section.wait_capacity,
            open=section.open,
            available=True,
        )

    @classmethod
    def unavailable(cls, course: CourseIdentifier) -> "ExportRow":
        return cls(subject=course.subject, number=course.number, title=course.title, available=False)
