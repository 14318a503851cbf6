"""
Remote session client for the Banner registration system.

Banner only answers search queries after the HTTP session has been primed:

    1. GET  term/termSelection?mode=search   (sets the session cookies)
    2. POST term/search?mode=search          (binds the term to the session)
    3. GET  searchResults/...                (the actual data query)

All three requests must go through the same cookie jar, so one FetchSession
owns one requests.Session. Create a fresh FetchSession per logical fetch and
never share one between threads.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

from bannerscrape.config import XHR_HEADERS, FetchConfig
from bannerscrape.errors import FetchError, ParseError, StatusError, TransportError
from bannerscrape.model import CourseSection, MeetingOccurrence

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _check_status(resp: requests.Response) -> None:
    try:
        resp.raise_for_status()
    except requests.HTTPError as exc:
        raise StatusError(resp.url, resp.status_code, resp.reason or "") from exc


def _decode_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise ParseError(f"Response from {resp.url} is not valid JSON: {exc}") from exc


def _list_field(payload: Any, key: str, url: str) -> list[dict[str, Any]]:
    """
    Pull a list of records out of a Banner JSON envelope.

    Banner sends `"data": null` for a search without hits, so None counts as
    an empty list.
    """
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object from {url}, got {type(payload).__name__}")
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseError(f"Field {key!r} from {url} is not a list")
    return [x for x in items if isinstance(x, dict)]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FetchSession:
    """
    One Banner browsing session (one cookie jar).

    `http` may be passed in for tests; otherwise a new requests.Session is
    created and closed together with this object.
    """

    def __init__(self, config: Optional[FetchConfig] = None, http: Optional[requests.Session] = None) -> None:
        self.config = config or FetchConfig()
        self.http = http if http is not None else requests.Session()
        self.http.headers.update(self.config.headers)
        self.primed_term: Optional[str] = None

    def __enter__(self) -> "FetchSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def _url(self, path: str) -> str:
        return f"{self.config.banner_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        log.debug("%s %s", method, url)
        try:
            resp = self.http.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        _check_status(resp)
        return resp

    def prime(self, term: str) -> None:
        """
        Run the two session-priming requests for `term`.

        With config.strict_priming off, a failing step is logged and skipped;
        the data query then decides whether the session is usable.
        """
        steps = (
            ("GET", "term/termSelection", {"params": {"mode": "search"}}),
            (
                "POST",
                "term/search",
                {
                    "params": {"mode": "search"},
                    "data": {
                        "term": term,
                        "studyPath": "",
                        "studyPathText": "",
                        "startDatepicker": "",
                        "endDatepicker": "",
                    },
                    "headers": XHR_HEADERS,
                },
            ),
        )
        for method, path, kwargs in steps:
            try:
                self._request(method, path, **kwargs)
            except FetchError as exc:
                if self.config.strict_priming:
                    raise
                log.warning("Ignoring failed session step %s %s: %s", method, path, exc)
        self.primed_term = term

    def search_sections(self, term: str, subject: str, number: str) -> List[CourseSection]:
        """
        Return all sections of SUBJECT NUMBER offered in `term` (may be empty).

        The session is primed on every call, so a retry after a failure
        starts from a clean server-side state.
        """
        self.prime(term)
        params = {
            "txt_term": term,
            "txt_subject": subject,
            "txt_courseNumber": number,
            "pageOffset": 0,
            "pageMaxSize": 50,
            "sortColumn": "subjectDescription",
            "sortDirection": "asc",
        }
        resp = self._request("GET", "searchResults/searchResults", params=params)
        records = _list_field(_decode_json(resp), "data", resp.url)
        return [CourseSection.from_json(r) for r in records]

    def meeting_times(self, term: str, crn: str) -> List[MeetingOccurrence]:
        """
        Return the meeting occurrences (with instructors) of one CRN.
        """
        if self.primed_term != term:
            self.prime(term)
        params = {"term": term, "courseReferenceNumber": crn}
        resp = self._request("GET", "searchResults/getFacultyMeetingTimes", params=params)
        records = _list_field(_decode_json(resp), "fmt", resp.url)
        return [MeetingOccurrence.from_json(r) for r in records]
