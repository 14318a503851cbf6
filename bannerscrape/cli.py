"""
CLI (Command Line Interface).

    bannerscrape --course CSC 110            # one course, printed as a report
    echo "CSC 110" | bannerscrape --course   # same, pair read from stdin
    bannerscrape --courses CSC 110 MATH 122  # several courses
    bannerscrape --all [--dry-run]           # every course in courses.json -> courses.csv

Exit codes: 0 ok, 1 fetch failures (the CSV is still written in --all mode),
2 bad input. Without a mode flag the usage text is printed and the exit code
is 0.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import IO, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from bannerscrape.catalog import fetch_catalog_info
from bannerscrape.config import COURSES_FILE, CSV_FILE, DEFAULT_TERM, DRY_RUN_LIMIT, MAX_WORKERS, REQUEST_TIMEOUT, FetchConfig
from bannerscrape.errors import FetchError, InputError, NotFoundError, ScrapeError
from bannerscrape.export import export_rows_to_csv
from bannerscrape.model import CourseIdentifier
from bannerscrape.pipeline import run_batch
from bannerscrape.report import format_course_report
from bannerscrape.session import FetchSession
from bannerscrape.storage import find_course, load_course_list

console = Console(stderr=True)
log = logging.getLogger("bannerscrape")

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_BAD_INPUT = 2


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def read_course_pair(args: list[str], stream: Optional[IO[str]] = None) -> tuple[str, str]:
    """
    Subject and number from the first two positional args, or else from the
    first line of `stream` (stdin) as two whitespace-separated fields.
    """
    if len(args) >= 2:
        return args[0].strip().upper(), args[1].strip()

    stream = stream if stream is not None else sys.stdin
    line = stream.readline()
    if not line:
        raise InputError("No course given (expected: SUBJECT NUMBER)")
    parts = line.split()
    if len(parts) < 2:
        raise InputError(f"Input must contain subject and number, got {line.strip()!r}")
    return parts[0].upper(), parts[1]


def course_pairs(args: list[str]) -> list[tuple[str, str]]:
    """
    ['CSC', '110', 'MATH', '122'] -> [('CSC', '110'), ('MATH', '122')]
    """
    if not args or len(args) % 2:
        raise InputError("--courses expects SUBJECT NUMBER pairs")
    return [(args[i].strip().upper(), args[i + 1].strip()) for i in range(0, len(args), 2)]


def _known_courses(path: Path) -> list[CourseIdentifier]:
    """
    Course list for the single-course modes: optional, only used to find
    the title and catalog pid.
    """
    if not path.exists():
        log.debug("No course list at %s, skipping catalog lookup", path)
        return []
    return load_course_list(path)


def report_course(subject: str, number: str, config: FetchConfig, known: list[CourseIdentifier]) -> str:
    """
    Fetch one course (sections, meeting times, catalog info) and render it.
    Errors propagate; nothing is retried here.
    """
    try:
        course = find_course(known, subject, number)
    except NotFoundError:
        course = CourseIdentifier(subject=subject, number=number)

    with FetchSession(config) as session:
        sections = session.search_sections(config.term, subject, number)
        details = [(s, session.meeting_times(config.term, s.crn)) for s in sections if s.crn]

    catalog = None
    if course.pid:
        try:
            catalog = fetch_catalog_info(course.pid, config)
        except NotFoundError as exc:
            log.warning("%s: no catalog entry: %s", course.code, exc)

    return format_course_report(course, details, catalog, term=config.term)


def _report_pairs(pairs: list[tuple[str, str]], config: FetchConfig, known: list[CourseIdentifier]) -> int:
    """
    Print one report per pair; the first fetch error stops the loop.
    """
    for i, (subject, number) in enumerate(pairs):
        try:
            text = report_course(subject, number, config, known)
        except FetchError as exc:
            log.error("%s %s: %s", subject, number, exc)
            return EXIT_FETCH_FAILED
        if i:
            print()
        print(text)
    return EXIT_OK


def _cmd_course(args: argparse.Namespace, config: FetchConfig) -> int:
    pair = read_course_pair(args.args)
    return _report_pairs([pair], config, _known_courses(Path(args.input)))


def _cmd_courses(args: argparse.Namespace, config: FetchConfig) -> int:
    pairs = course_pairs(args.args)
    return _report_pairs(pairs, config, _known_courses(Path(args.input)))


def _cmd_all(args: argparse.Namespace, config: FetchConfig) -> int:
    courses = load_course_list(args.input)
    if args.dry_run:
        courses = courses[:DRY_RUN_LIMIT]
    log.info("Fetching %d courses for term %s (%d workers)", len(courses), config.term, config.workers)

    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task("Fetching", total=len(courses))
        result = run_batch(courses, config, on_course_done=lambda _c: progress.advance(task))

    n = export_rows_to_csv(result.rows, args.output)
    print(f"Exported {n} rows to: {args.output}")

    if not result.errors:
        return EXIT_OK

    print(f"{len(result.errors)} errors:")
    for failure in result.errors:
        print(f"- {failure}")
    return EXIT_FETCH_FAILED


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser.
    """
    parser = argparse.ArgumentParser(prog="bannerscrape", description="UVic Banner course section scraper")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--course", action="store_true", help="Fetch one course (SUBJECT NUMBER, or read from stdin)")
    mode.add_argument("--courses", action="store_true", help="Fetch several courses (SUBJECT NUMBER pairs)")
    mode.add_argument("--all", action="store_true", help="Fetch every course in the course list and export CSV")

    parser.add_argument("args", nargs="*", help="SUBJECT NUMBER [SUBJECT NUMBER ...]")
    parser.add_argument("--dry-run", action="store_true", help=f"With --all: only the first {DRY_RUN_LIMIT} courses")
    parser.add_argument("--term", "-t", default=DEFAULT_TERM, help=f"Term code (default: {DEFAULT_TERM})")
    parser.add_argument("--workers", "-w", type=int, default=MAX_WORKERS, help=f"Concurrent courses (default: {MAX_WORKERS})")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT, help="Per-request timeout in seconds")
    parser.add_argument(
        "--lenient-session",
        action="store_true",
        help="Continue when the session-priming requests fail",
    )
    parser.add_argument("--input", "-i", default=COURSES_FILE, help=f"Course list (default: {COURSES_FILE})")
    parser.add_argument("--output", "-o", default=CSV_FILE, help=f"CSV output (default: {CSV_FILE})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to the selected mode,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.course or args.courses or args.all):
        parser.print_help()
        raise SystemExit(EXIT_OK)

    _setup_logging(args.verbose)

    if args.workers < 1:
        log.error("--workers must be at least 1")
        raise SystemExit(EXIT_BAD_INPUT)
    if args.timeout <= 0:
        log.error("--timeout must be greater than 0")
        raise SystemExit(EXIT_BAD_INPUT)

    config = FetchConfig(
        term=args.term.strip(),
        workers=args.workers,
        timeout=args.timeout,
        strict_priming=not args.lenient_session,
    )

    try:
        if args.course:
            raise SystemExit(_cmd_course(args, config))
        if args.courses:
            raise SystemExit(_cmd_courses(args, config))
        raise SystemExit(_cmd_all(args, config))
    except InputError as exc:
        log.error("%s", exc)
        raise SystemExit(EXIT_BAD_INPUT)
    except ScrapeError as exc:
        log.error("%s", exc)
        raise SystemExit(EXIT_FETCH_FAILED)
