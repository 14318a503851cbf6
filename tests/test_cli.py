"""
Tests for CLI entry points.

These tests focus on:
- argument validation and exit codes
- reading the course pair from stdin
- the --all and --course flows against a fake backend
  (no network, files in a temporary directory)
"""

import contextlib
import csv
import io
import json
import runpy
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from bannerscrape.cli import course_pairs, main, read_course_pair
from bannerscrape.errors import InputError

from fakes import FakeBackend, make_meeting, make_section

COURSES = [
    {"__catalogCourseId": "CSC110", "subjectCode": {"name": "CSC"}, "title": "Fundamentals I"},
    {"__catalogCourseId": "MATH122", "subjectCode": {"name": "MATH"}, "title": "Logic"},
]


def _run(argv: list[str]) -> tuple[int, str]:
    """
    Run main() and return (exit code, captured stdout).
    """
    out = io.StringIO()
    code = None
    with contextlib.redirect_stdout(out):
        try:
            main(argv)
        except SystemExit as exc:
            code = exc.code
    return code, out.getvalue()


class TestArguments(unittest.TestCase):
    def test_no_mode_prints_usage_and_succeeds(self) -> None:
        code, out = _run([])
        self.assertEqual(code, 0)
        self.assertIn("usage: bannerscrape", out)

    def test_course_pair_from_args(self) -> None:
        self.assertEqual(read_course_pair(["csc", "110"]), ("CSC", "110"))

    def test_course_pair_from_stdin(self) -> None:
        self.assertEqual(read_course_pair([], io.StringIO("math 122\nignored\n")), ("MATH", "122"))

    def test_course_pair_needs_two_fields(self) -> None:
        with self.assertRaises(InputError):
            read_course_pair([], io.StringIO("CSC\n"))
        with self.assertRaises(InputError):
            read_course_pair([], io.StringIO(""))

    def test_course_pairs(self) -> None:
        self.assertEqual(course_pairs(["CSC", "110", "math", "122"]), [("CSC", "110"), ("MATH", "122")])
        with self.assertRaises(InputError):
            course_pairs(["CSC", "110", "MATH"])

    def test_courses_with_odd_args_is_input_error(self) -> None:
        code, _ = _run(["--courses", "CSC", "110", "MATH"])
        self.assertEqual(code, 2)

    def test_all_without_course_list_is_input_error(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            code, _ = _run(["--all", "--input", str(Path(d) / "missing.json")])
        self.assertEqual(code, 2)

    def test_workers_must_be_positive(self) -> None:
        code, _ = _run(["--all", "--workers", "0"])
        self.assertEqual(code, 2)

    def test_timeout_must_be_positive(self) -> None:
        for value in ("0", "-5"):
            code, _ = _run(["--course", "CSC", "110", "--timeout", value])
            self.assertEqual(code, 2, value)

    def test_runs_as_module(self) -> None:
        out = io.StringIO()
        with mock.patch.object(sys, "argv", ["bannerscrape"]), contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                runpy.run_module("bannerscrape", run_name="__main__")
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn("usage: bannerscrape", out.getvalue())


class TestAllMode(unittest.TestCase):
    def test_all_exports_csv(self) -> None:
        backend = FakeBackend(
            sections={("CSC", "110"): [make_section("12345")]},
            meetings={"12345": [make_meeting("MWF", "1330", "1420")]},
        )
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "courses.json"
            src.write_text(json.dumps(COURSES), encoding="utf-8")
            dst = Path(d) / "courses.csv"

            with mock.patch("bannerscrape.pipeline.FetchSession", backend.factory):
                code, out = _run(["--all", "--input", str(src), "--output", str(dst)])

            with dst.open(encoding="utf-8", newline="") as fh:
                rows = list(csv.DictReader(fh))

        self.assertEqual(code, 0)
        self.assertIn("Exported 2 rows", out)
        available = {(r["Subject"], r["CourseNumber"]): r["Available"] for r in rows}
        self.assertEqual(available, {("CSC", "110"): "true", ("MATH", "122"): "false"})

    def test_dry_run_limits_to_first_ten(self) -> None:
        many = [
            {"__catalogCourseId": f"CSC{100 + i}", "subjectCode": {"name": "CSC"}, "title": f"Course {i}"}
            for i in range(15)
        ]
        backend = FakeBackend()
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "courses.json"
            src.write_text(json.dumps(many), encoding="utf-8")
            dst = Path(d) / "courses.csv"

            with mock.patch("bannerscrape.pipeline.FetchSession", backend.factory):
                code, _ = _run(["--all", "--dry-run", "--input", str(src), "--output", str(dst)])

        self.assertEqual(code, 0)
        self.assertEqual(backend.sessions_created, 10)

    def test_section_failure_gives_exit_code_one(self) -> None:
        backend = FakeBackend(
            sections={("CSC", "110"): [make_section("12345")]},
            meeting_failures=("12345",),
        )
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "courses.json"
            src.write_text(json.dumps(COURSES[:1]), encoding="utf-8")
            dst = Path(d) / "courses.csv"

            with mock.patch("bannerscrape.pipeline.FetchSession", backend.factory):
                code, out = _run(["--all", "--input", str(src), "--output", str(dst)])
            self.assertTrue(dst.exists())

        self.assertEqual(code, 1)
        self.assertIn("CSC 110 (CRN 12345)", out)


class TestCourseMode(unittest.TestCase):
    def test_course_prints_report(self) -> None:
        backend = FakeBackend(
            sections={("CSC", "110"): [make_section("12345", "A01"), make_section("12399", "B01")]},
            meetings={"12345": [make_meeting("MWF")], "12399": [make_meeting("T", "1430", "1720")]},
        )
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "courses.json"
            src.write_text(json.dumps(COURSES), encoding="utf-8")
            with mock.patch("bannerscrape.cli.FetchSession", backend.factory):
                code, out = _run(["--course", "csc", "110", "--input", str(src)])

        self.assertEqual(code, 0)
        self.assertIn("CSC 110 - Fundamentals I", out)
        self.assertIn("A01 (CRN 12345)", out)
        self.assertIn("B01 (CRN 12399)", out)

    def test_course_fetch_error_stops_with_code_one(self) -> None:
        backend = FakeBackend(failures={("CSC", "110"): 1})
        with tempfile.TemporaryDirectory() as d:
            with mock.patch("bannerscrape.cli.FetchSession", backend.factory):
                code, out = _run(["--courses", "CSC", "110", "MATH", "122", "--input", str(Path(d) / "none.json")])

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        # first error stops the run, no retry in interactive modes
        self.assertEqual([(s, n) for s, n, _ in backend.search_calls], [("CSC", "110")])


if __name__ == "__main__":
    unittest.main()
