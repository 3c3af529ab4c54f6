"""
Integration tests for instrumentation sessions: files on disk, backups,
worker threads and per-file failures.
"""

from pathlib import Path

import pytest

pytestmark = pytest.mark.integration

import tracemark.session
from tracemark.exceptions import ParserError
from tracemark.instrument import Reason
from tracemark.parser import parse_source
from tracemark.session import atomic_write, instrument_source, process_file, run

EXPECTED_BUTTON = b"""#include "Button.h"

void Button::Press()
{
    TRACE_MARKER(Button::Press);
    OnPressed.Broadcast();
}

bool Button::IsPressed() const
{
    TRACE_MARKER(Button::IsPressed);
    return bPressed;
}
"""


class TestInstrumentSource:
    def test_returns_new_buffer_and_plan(self, cpp_parser):
        new_source, plan = instrument_source(b"void f() { g(); }", cpp_parser)

        assert new_source == b"void f() { TRACE_MARKER(f); g(); }"
        assert plan.instrumented == ["f"]

    def test_unchanged_buffer_is_returned_as_is(self, cpp_parser):
        source = b"int add(int a, int b);"
        new_source, plan = instrument_source(source, cpp_parser)

        assert new_source is source
        assert plan.edits == []


class TestProcessFile:
    def test_writes_instrumented_file(self, temp_project):
        path = temp_project / "src" / "ui" / "Button.cpp"

        report = process_file(path)

        assert report.status == "instrumented"
        assert report.edits == 2
        assert report.instrumented == ["Button::Press", "Button::IsPressed"]
        assert path.read_bytes() == EXPECTED_BUTTON

    def test_dry_run_leaves_file_untouched(self, temp_project):
        path = temp_project / "main.cpp"
        before = path.read_bytes()

        report = process_file(path, dry_run=True, show_diff=True)

        assert report.status == "instrumented"
        assert path.read_bytes() == before
        assert "+    TRACE_MARKER(main);" in report.diff

    def test_diagnostics_are_reported(self, temp_dir):
        path = temp_dir / "compile_time.cpp"
        path.write_bytes(b"constexpr int one() { return 1; }\n")

        report = process_file(path)

        assert report.status == "unchanged"
        assert [d.reason for d in report.diagnostics] == [Reason.CONSTEXPR.value]
        assert report.diagnostics[0].line == 1

    def test_missing_file_fails_without_raising(self, temp_dir):
        report = process_file(temp_dir / "missing.cpp")

        assert report.status == "failed"
        assert report.error


class TestAtomicWrite:
    def test_replaces_content_and_keeps_mode(self, temp_dir):
        path = temp_dir / "a.cpp"
        path.write_bytes(b"old")
        path.chmod(0o640)

        atomic_write(path, b"new")

        assert path.read_bytes() == b"new"
        assert path.stat().st_mode & 0o777 == 0o640
        assert [p.name for p in temp_dir.iterdir()] == ["a.cpp"]


class TestRun:
    def test_run_instruments_tree_and_backs_it_up(self, temp_project):
        original = (temp_project / "src" / "ui" / "Button.cpp").read_bytes()

        summary = run(temp_project)

        assert summary.total_files == 2
        assert summary.total_edits == 3
        assert [f.path for f in summary.files] == ["main.cpp", "src/ui/Button.cpp"]
        assert (temp_project / "src" / "ui" / "Button.cpp").read_bytes() == EXPECTED_BUTTON

        assert summary.backup_dir is not None
        backup_path = Path(summary.backup_dir)
        assert backup_path.parent == temp_project.resolve().parent
        assert backup_path.name.startswith("project_bak_")
        assert (backup_path / "src" / "ui" / "Button.cpp").read_bytes() == original

    def test_ignored_directories_are_left_alone(self, temp_project):
        generated = temp_project / "build" / "generated.cpp"
        before = generated.read_bytes()

        run(temp_project, backup=False)

        assert generated.read_bytes() == before

    def test_second_run_is_a_no_op(self, temp_project):
        run(temp_project, backup=False)
        once = (temp_project / "main.cpp").read_bytes()

        summary = run(temp_project, backup=False)

        assert summary.total_edits == 0
        assert all(f.already_instrumented for f in summary.files)
        assert (temp_project / "main.cpp").read_bytes() == once

    def test_dry_run_writes_nothing(self, temp_project):
        before = (temp_project / "main.cpp").read_bytes()

        summary = run(temp_project, dry_run=True)

        assert summary.dry_run
        assert summary.backup_dir is None
        assert summary.total_edits == 3
        assert (temp_project / "main.cpp").read_bytes() == before
        assert not list(temp_project.parent.glob("project_bak_*"))

    def test_workers_give_same_result_as_sequential(self, temp_project):
        sequential = run(temp_project, dry_run=True)
        threaded = run(temp_project, dry_run=True, workers=4)

        assert [(f.path, f.instrumented) for f in threaded.files] == [
            (f.path, f.instrumented) for f in sequential.files
        ]

    def test_parse_failure_only_fails_that_file(self, temp_project, monkeypatch):
        def flaky_parse(source, parser=None, file_path="<buffer>"):
            if file_path == "main.cpp":
                raise ParserError(file_path, "parser timed out")
            return parse_source(source, parser, file_path=file_path)

        monkeypatch.setattr(tracemark.session, "parse_source", flaky_parse)
        before = (temp_project / "main.cpp").read_bytes()

        summary = run(temp_project, backup=False)

        statuses = {f.path: f.status for f in summary.files}
        assert statuses == {"main.cpp": "failed", "src/ui/Button.cpp": "instrumented"}
        assert [f.path for f in summary.failed_files] == ["main.cpp"]
        assert (temp_project / "main.cpp").read_bytes() == before

    def test_config_overrides(self, temp_project):
        run(temp_project, config_overrides={"marker": "TRACE_CPUPROFILER_EVENT_SCOPE"}, backup=False)

        assert b"TRACE_CPUPROFILER_EVENT_SCOPE(main);" in (temp_project / "main.cpp").read_bytes()
