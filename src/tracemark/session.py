"""
Instrumentation session: read, parse, plan, apply and write back source files.

All I/O happens before and after the pure plan/apply step. Files are
independent, so a run can fan out over a thread pool as long as every worker
owns its own parser.
"""

import os
import shutil
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

from tree_sitter import Parser

from tracemark.backup import backup_files, default_backup_dir
from tracemark.exceptions import EditOutOfBoundsError, ParserError
from tracemark.instrument import (
    DiagnosticsSink,
    InstrumentationPlanner,
    Plan,
    apply_edits,
    get_instrument_config,
    preview_edits,
)
from tracemark.logging_config import logger
from tracemark.parser import create_parser, parse_source
from tracemark.parser.config import DEFAULT_LANGUAGE
from tracemark.scanner import find_source_files
from tracemark.schemas import DiagnosticRecord, FileReport, RunSummary
from tracemark.tracing import trace

_thread_state = threading.local()


def _thread_parser(language: str = DEFAULT_LANGUAGE) -> Parser:
    """Parser owned by the calling thread."""
    parser = getattr(_thread_state, "parser", None)
    if parser is None:
        parser = create_parser(language)
        _thread_state.parser = parser
    return parser


def instrument_source(
    source: bytes,
    parser: Optional[Parser] = None,
    config: Optional[dict] = None,
    sink: Optional[DiagnosticsSink] = None,
    file_path: str = "<buffer>",
) -> Tuple[bytes, Plan]:
    """
    Instrument one buffer in memory.

    Returns:
        (new_source, plan). new_source equals source when the plan has no edits.

    Raises:
        ParserError: If the buffer cannot be parsed.
        EditOutOfBoundsError: If a planned edit does not fit the buffer.
    """
    config = config if config is not None else get_instrument_config()
    tree = parse_source(source, parser or _thread_parser(), file_path=file_path)

    planner = InstrumentationPlanner(
        source,
        sink=sink,
        marker=config["marker"],
        empty_body_policy=config["empty_body_policy"],
        compile_time_qualifiers=config["compile_time_qualifiers"],
        report_syntax_errors=config["report_syntax_errors"],
    )
    plan = planner.plan(tree.root_node)

    if not plan.edits:
        return source, plan
    return apply_edits(source, plan.edits), plan


def atomic_write(file_path: Path, content: bytes) -> None:
    """
    Write file atomically using temp file + rename.

    The temp file lives in the target directory so the rename stays on one
    filesystem. The original permission bits are carried over.
    """
    path = Path(file_path)
    fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        shutil.copymode(str(path), temp_path)
        os.replace(temp_path, str(path))
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
    logger.debug(f"Atomic write completed: {path}")


def process_file(
    file_path: Path,
    parser: Optional[Parser] = None,
    config: Optional[dict] = None,
    dry_run: bool = False,
    show_diff: bool = False,
    display_path: Optional[str] = None,
) -> FileReport:
    """
    Instrument a single file on disk.

    Parse failures, out-of-bounds edits and I/O errors are fatal for this
    file only: they are logged and reported as status "failed", and the file
    is left untouched.
    """
    file_path = Path(file_path)
    shown = display_path or str(file_path)
    logger.info(shown)

    try:
        source = file_path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read {shown}: {e}")
        return FileReport(path=shown, status="failed", error=str(e))

    sink = DiagnosticsSink()
    try:
        new_source, plan = instrument_source(source, parser, config, sink=sink, file_path=shown)
    except (ParserError, EditOutOfBoundsError) as e:
        logger.error(f"Skipping {shown}: {e}")
        return FileReport(path=shown, status="failed", error=str(e))

    for diagnostic in plan.diagnostics:
        where = f"{shown}:{diagnostic.line}" if diagnostic.line else shown
        logger.warning(f"{diagnostic.label} has error ({diagnostic.reason.value}) at {where}--->\n{diagnostic.snippet}")
    for name in plan.instrumented:
        logger.info(f"function_name: {name}")

    report = FileReport(
        path=shown,
        status="instrumented" if plan.edits else "unchanged",
        edits=len(plan.edits),
        instrumented=list(plan.instrumented),
        already_instrumented=len(plan.already_instrumented),
        diagnostics=[DiagnosticRecord(**d.to_dict()) for d in plan.diagnostics],
    )

    if show_diff and plan.edits:
        report.diff = preview_edits(source, plan.edits, file_path=shown)

    if plan.edits and not dry_run:
        try:
            atomic_write(file_path, new_source)
        except OSError as e:
            logger.error(f"Failed to write {shown}: {e}")
            report.status = "failed"
            report.error = str(e)

    return report


def _process_in_worker(file_path: Path, root: Path, config: dict, dry_run: bool, show_diff: bool) -> FileReport:
    return process_file(
        file_path,
        parser=_thread_parser(),
        config=config,
        dry_run=dry_run,
        show_diff=show_diff,
        display_path=file_path.relative_to(root).as_posix(),
    )


@trace
def run(
    root: Path,
    config_overrides: Optional[dict] = None,
    extensions: Optional[List[str]] = None,
    ignore_patterns: Optional[List[str]] = None,
    dry_run: bool = False,
    backup: bool = True,
    backup_dir: Optional[Path] = None,
    workers: int = 1,
    show_diff: bool = False,
) -> RunSummary:
    """
    Instrument every source file below root.

    Args:
        root: Source tree to instrument
        config_overrides: Instrumentation options (see INSTRUMENT_CONFIG)
        extensions: File extensions to process (default: .cpp)
        ignore_patterns: Extra gitignore-style patterns to skip
        dry_run: Plan and report, but write nothing (no backup either)
        backup: Copy the files into a timestamped sibling directory first
        backup_dir: Explicit backup directory instead of the default
        workers: Number of worker threads
        show_diff: Attach a unified diff to every changed file's report

    Returns:
        RunSummary with one FileReport per file, in path order.

    Raises:
        ConfigError: If the configuration is invalid (before any file is touched).
        BackupError: If the backup cannot be created.
    """
    start_time = time.time()
    root = Path(root).resolve()
    config = get_instrument_config(config_overrides)

    files = find_source_files(root, extensions=extensions, ignore_patterns=ignore_patterns)

    backup_path = None
    if backup and not dry_run and files:
        backup_path = Path(backup_dir) if backup_dir else default_backup_dir(root)
        backup_files(files, root, backup_path)

    if workers > 1 and len(files) > 1:
        logger.debug(f"Processing {len(files)} files on {workers} threads")
        with ThreadPoolExecutor(max_workers=min(workers, len(files))) as executor:
            futures = [
                executor.submit(_process_in_worker, f, root, config, dry_run, show_diff)
                for f in files
            ]
            reports = [future.result() for future in futures]
    else:
        reports = [_process_in_worker(f, root, config, dry_run, show_diff) for f in files]

    summary = RunSummary(
        root=str(root),
        total_files=len(files),
        files=reports,
        backup_dir=str(backup_path) if backup_path else None,
        dry_run=dry_run,
        duration=time.time() - start_time,
    )
    logger.info(
        f"Instrumented {summary.total_edits} functions in {len(files)} files "
        f"({summary.total_diagnostics} diagnostics, {len(summary.failed_files)} failed)"
    )
    return summary
