"""
Batch pipeline: fetch every course of a course list and flatten the result
into ExportRows.

Shape of one run:

- a fixed pool of `config.workers` threads, one task per course
- each task owns a fresh FetchSession (own cookie jar)
- finished rows go to a rows channel, failures to an errors channel; each
  channel has exactly one consumer thread appending to the result list
- after all tasks are done both channels get a sentinel and the consumers
  are joined

A failing course never stops its siblings: it ends up as one unavailable row
plus one FetchFailure. Row order depends on task completion and is not
stable between runs.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from bannerscrape.config import FetchConfig
from bannerscrape.errors import FetchError
from bannerscrape.model import CourseIdentifier, CourseSection, ExportRow
from bannerscrape.session import FetchSession

log = logging.getLogger(__name__)

SessionFactory = Callable[[FetchConfig], FetchSession]

_DONE = object()


@dataclass
class FetchFailure:
    """
    One error collected during a batch, with enough context to find it again.
    """

    course: CourseIdentifier
    error: Exception
    crn: str = ""

    def __str__(self) -> str:
        where = self.course.code
        if self.crn:
            where += f" (CRN {self.crn})"
        return f"{where}: {self.error}"


@dataclass
class BatchResult:
    rows: List[ExportRow] = field(default_factory=list)
    errors: List[FetchFailure] = field(default_factory=list)


def fetch_sections_with_retry(
    session: FetchSession,
    course: CourseIdentifier,
    term: str,
    attempts: int,
    retry_delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> List[CourseSection]:
    """
    Search sections of `course`, retrying FetchErrors with a fixed pause.
    Re-raises the last error once all attempts are used up.
    """
    attempt = 1
    while True:
        try:
            return session.search_sections(term, course.subject, course.number)
        except FetchError as exc:
            if attempt >= attempts:
                raise
            log.warning(
                "%s: attempt %d/%d failed (%s), retrying in %.1fs",
                course.code,
                attempt,
                attempts,
                exc,
                retry_delay,
            )
            sleep(retry_delay)
            attempt += 1


def _collect(channel: queue.Queue, sink: list) -> None:
    while True:
        item = channel.get()
        if item is _DONE:
            return
        sink.append(item)


def _course_task(
    course: CourseIdentifier,
    config: FetchConfig,
    session_factory: SessionFactory,
    rows: queue.Queue,
    errors: queue.Queue,
    sleep: Callable[[float], None],
) -> None:
    session: Optional[FetchSession] = None
    emitted = 0
    try:
        session = session_factory(config)
        try:
            sections = fetch_sections_with_retry(
                session, course, config.term, config.attempts, config.retry_delay, sleep=sleep
            )
        except FetchError as exc:
            log.error("%s: giving up after %d attempts: %s", course.code, config.attempts, exc)
            errors.put(FetchFailure(course, exc))
            rows.put(ExportRow.unavailable(course))
            return

        for section in sections:
            if not section.crn:
                continue
            try:
                meetings = session.meeting_times(config.term, section.crn)
            except FetchError as exc:
                log.warning("%s CRN %s: skipping section: %s", course.code, section.crn, exc)
                errors.put(FetchFailure(course, exc, crn=section.crn))
                continue
            for meeting in meetings:
                rows.put(ExportRow.from_meeting(course, section, meeting))
                emitted += 1

        # no live section (or none with meetings): keep the course visible
        if not emitted:
            rows.put(ExportRow.unavailable(course))
    except Exception as exc:
        # anything outside FetchError is still confined to this course
        log.exception("%s: unexpected error", course.code)
        errors.put(FetchFailure(course, exc))
        if not emitted:
            rows.put(ExportRow.unavailable(course))
    finally:
        if session is not None:
            session.close()


def run_batch(
    courses: Iterable[CourseIdentifier],
    config: Optional[FetchConfig] = None,
    session_factory: Optional[SessionFactory] = None,
    sleep: Callable[[float], None] = time.sleep,
    on_course_done: Optional[Callable[[CourseIdentifier], None]] = None,
) -> BatchResult:
    """
    Fetch all `courses` with at most `config.workers` in flight and return
    the collected rows and failures.
    """
    cfg = config or FetchConfig()
    factory: SessionFactory = session_factory or FetchSession
    result = BatchResult()

    rows_channel: queue.Queue = queue.Queue()
    errors_channel: queue.Queue = queue.Queue()
    consumers = [
        threading.Thread(target=_collect, args=(rows_channel, result.rows), name="rows-consumer", daemon=True),
        threading.Thread(target=_collect, args=(errors_channel, result.errors), name="errors-consumer", daemon=True),
    ]
    for t in consumers:
        t.start()

    futures: dict[Future, CourseIdentifier] = {}
    try:
        with ThreadPoolExecutor(max_workers=max(1, cfg.workers), thread_name_prefix="course") as pool:
            for course in courses:
                fut = pool.submit(_course_task, course, cfg, factory, rows_channel, errors_channel, sleep)
                futures[fut] = course
            for fut in as_completed(futures):
                if on_course_done is not None:
                    on_course_done(futures[fut])
    finally:
        rows_channel.put(_DONE)
        errors_channel.put(_DONE)
        for t in consumers:
            t.join()

    # tasks trap their own errors; this only fires if the trap itself failed
    for fut in futures:
        fut.result()

    log.info(
        "Fetched %d courses: %d rows, %d failures",
        len(futures),
        len(result.rows),
        len(result.errors),
    )
    return result
