"""
Test doubles shared by the test modules.

- FakeHTTP / FakeResponse stand in for requests.Session / requests.Response
- FakeBackend hands out FakeSessions to the batch pipeline and records how
  many of them are open at the same time
"""

from __future__ import annotations

import threading
import time
from typing import Any, Optional

import requests

from bannerscrape.errors import StatusError, TransportError
from bannerscrape.model import CourseSection, InstructorAssignment, MeetingOccurrence

INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, url: str = "https://banner.test/x") -> None:
        self.status_code = status
        self.reason = "OK" if status < 400 else "Error"
        self.url = url
        self._payload = payload

    def json(self) -> Any:
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}", response=self)


class FakeHTTP:
    """
    Replays queued responses (or raises queued exceptions) in order.
    """

    def __init__(self, responses: list[Any]) -> None:
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def close(self) -> None:
        self.closed = True


def make_section(crn: str, section: str = "A01", **kwargs: Any) -> CourseSection:
    defaults = dict(
        term="202501",
        subject="CSC",
        number="110",
        title="Fundamentals of Programming I",
        schedule_type="Lecture",
        instructional_method="Face-to-face",
        capacity=50,
        enrollment=45,
        open=True,
    )
    defaults.update(kwargs)
    return CourseSection(crn=crn, section=section, **defaults)


def make_meeting(days: str = "MWF", begin: str = "1330", end: str = "1420", **kwargs: Any) -> MeetingOccurrence:
    defaults = dict(
        building="ECS",
        building_description="Engineering & Computer Science Building",
        room="123",
        start_date="01/06/2025",
        end_date="04/04/2025",
        meeting_type="CLAS",
        instructors=[InstructorAssignment(name="Ada Lovelace", email="ada@uvic.ca", primary=True)],
    )
    defaults.update(kwargs)
    flags = tuple(letter in days for letter in "MTWRF")
    return MeetingOccurrence(days=flags, begin_time=begin, end_time=end, **defaults)


class FakeSession:
    def __init__(self, backend: "FakeBackend") -> None:
        self.backend = backend
        self.closed = False

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def search_sections(self, term: str, subject: str, number: str) -> list[CourseSection]:
        return self.backend.search(subject, number)

    def meeting_times(self, term: str, crn: str) -> list[MeetingOccurrence]:
        return self.backend.meetings_for(crn)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.backend.session_closed()


class FakeBackend:
    """
    sections:         (subject, number) -> sections returned by the search
    meetings:         crn -> meetings
    failures:         (subject, number) -> how many searches fail before one succeeds
    meeting_failures: CRNs whose meeting lookup fails
    meeting_errors:   crn -> arbitrary exception raised by the meeting lookup
    """

    def __init__(
        self,
        sections: Optional[dict[tuple[str, str], list[CourseSection]]] = None,
        meetings: Optional[dict[str, list[MeetingOccurrence]]] = None,
        failures: Optional[dict[tuple[str, str], int]] = None,
        meeting_failures: tuple[str, ...] = (),
        meeting_errors: Optional[dict[str, Exception]] = None,
        delay: float = 0.0,
    ) -> None:
        self.sections = sections or {}
        self.meetings = meetings or {}
        self.failures = dict(failures or {})
        self.meeting_failures = set(meeting_failures)
        self.meeting_errors = meeting_errors or {}
        self.delay = delay

        self.lock = threading.Lock()
        self.open_sessions = 0
        self.max_open_sessions = 0
        self.sessions_created = 0
        self.sessions_closed = 0
        self.search_calls: list[tuple[str, str, float]] = []

    def factory(self, config: Any) -> FakeSession:
        with self.lock:
            self.sessions_created += 1
            self.open_sessions += 1
            self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return FakeSession(self)

    def session_closed(self) -> None:
        with self.lock:
            self.open_sessions -= 1
            self.sessions_closed += 1

    def search(self, subject: str, number: str) -> list[CourseSection]:
        with self.lock:
            self.search_calls.append((subject, number, time.monotonic()))
            remaining = self.failures.get((subject, number), 0)
            if remaining:
                self.failures[(subject, number)] = remaining - 1
        if self.delay:
            time.sleep(self.delay)
        if remaining:
            raise TransportError(f"connection reset while searching {subject} {number}")
        return list(self.sections.get((subject, number), []))

    def meetings_for(self, crn: str) -> list[MeetingOccurrence]:
        if crn in self.meeting_errors:
            raise self.meeting_errors[crn]
        if crn in self.meeting_failures:
            raise StatusError(f"https://banner.test/meetings?crn={crn}", 500, "Server Error")
        return list(self.meetings.get(crn, []))
