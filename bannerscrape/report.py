"""
Human-readable course report for the --course / --courses modes.

Sections are split by label: UVic lecture sections start with "A" (A01,
A02, ...); everything else (B01 labs, T01 tutorials) goes into the second
block. Empty fields are left out instead of printed blank.
"""

from __future__ import annotations

from typing import Optional, Sequence

from bannerscrape.model import CatalogInfo, CourseIdentifier, CourseSection, MeetingOccurrence
from bannerscrape.text import html_to_text

LECTURE_PREFIX = "A"

SectionDetail = tuple[CourseSection, list[MeetingOccurrence]]


def is_lecture(section_label: str) -> bool:
    return section_label.strip().upper().startswith(LECTURE_PREFIX)


def _field(label: str, value: str) -> Optional[str]:
    value = value.strip()
    return f"    {label:<12}{value}" if value else None


def _enrollment_text(section: CourseSection) -> str:
    text = f"{section.enrollment}/{section.capacity}"
    if not section.open:
        text += " (closed)"
    if section.wait_count:
        text += f", waitlist {section.wait_count}/{section.wait_capacity}"
    return text


def _meeting_lines(meeting: MeetingOccurrence) -> list[str]:
    schedule = " ".join(p for p in (meeting.day_codes, meeting.time_range) if p)
    location = meeting.location
    if meeting.building_description and meeting.room:
        location = f"{meeting.building_description} {meeting.room}"
    instructor = meeting.primary_instructor

    lines = [
        _field("Schedule:", schedule),
        _field("Location:", location),
        _field("Instructor:", instructor.name if instructor else ""),
        _field("Dates:", meeting.date_range),
    ]
    return [line for line in lines if line]


def _section_block(section: CourseSection, meetings: Sequence[MeetingOccurrence]) -> list[str]:
    title = f"  {section.section or '?'} (CRN {section.crn})"
    if section.instructional_method:
        title += f" - {section.instructional_method}"
    lines = [title]
    for meeting in meetings:
        lines.extend(_meeting_lines(meeting))
    lines.append(f"    {'Enrollment:':<12}{_enrollment_text(section)}")
    return lines


def _catalog_block(catalog: CatalogInfo) -> list[str]:
    lines: list[str] = []
    if catalog.credits:
        lines.append(f"Credits: {catalog.credits}")
    for label, raw in (
        ("Description", catalog.description),
        ("Prerequisites", catalog.prerequisites),
        ("Notes", catalog.supplemental_notes),
    ):
        text = html_to_text(raw)
        if text:
            lines.append(f"{label}:")
            lines.extend(f"  {line}" for line in text.splitlines())
    return lines


def format_course_report(
    course: CourseIdentifier,
    sections: Sequence[SectionDetail],
    catalog: Optional[CatalogInfo] = None,
    term: str = "",
) -> str:
    """
    Render one course (with its sections and meetings) as plain text.
    """
    title = course.title or (catalog.title if catalog else "") or (sections[0][0].title if sections else "")
    heading = course.code + (f" - {title}" if title else "")
    out = [heading, "=" * len(heading)]

    if catalog is not None:
        out.extend(_catalog_block(catalog))

    if not sections:
        out.append(f"No sections offered in term {term}." if term else "No sections offered.")
        return "\n".join(out)

    lectures = [s for s in sections if is_lecture(s[0].section)]
    others = [s for s in sections if not is_lecture(s[0].section)]

    for name, group in (("Lectures", lectures), ("Labs / Tutorials", others)):
        if not group:
            continue
        out.append("")
        out.append(f"{name}:")
        for section, meetings in group:
            out.extend(_section_block(section, meetings))

    return "\n".join(out)
