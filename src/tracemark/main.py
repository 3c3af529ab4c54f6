import json
import typer
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from tracemark import __version__
from tracemark.backup import backup_files, restore_backup
from tracemark.cli.config import CLIConfig
from tracemark.cli.output import echo, get_console, print_error
from tracemark.cli.render import render_file_report, render_summary
from tracemark.exceptions import BackupError, ConfigError, GrammarNotFoundError
from tracemark.instrument import EmptyBodyPolicy, get_instrument_config
from tracemark.logging_config import default_log_path, logger, setup_logging
from tracemark.scanner import find_source_files
from tracemark.session import process_file, run

app = typer.Typer(help="Insert profiling trace statements into C++ function bodies.")
console = get_console()


def _configure_logging(log_file: Optional[Path] = None) -> Optional[Path]:
    verbose = CLIConfig.is_verbose()
    return setup_logging(
        level="DEBUG" if verbose else "INFO",
        suppress_console=CLIConfig.is_machine_mode() and not verbose,
        log_file=log_file,
        force=True,
    )


# Global CLI callback for flags that apply to all commands
@app.callback()
def global_options(
    human: bool = typer.Option(
        False,
        "--human",
        "-H",
        help="Enable human mode: tables and colors (also via TRACEMARK_HUMAN_MODE env var)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
):
    """
    tracemark: trace-statement instrumentation for C++ sources.

    Machine mode is DEFAULT (plain output).
    Use --human/-H for pretty output.
    """
    CLIConfig.set_machine_mode(False if human else None)
    CLIConfig.set_verbose(verbose)
    _configure_logging()


@app.command()
def instrument(
    root: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Root directory of the sources to instrument.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan and report only; write nothing."),
    diff: bool = typer.Option(False, "--diff", help="Show a unified diff for every changed file."),
    no_backup: bool = typer.Option(False, "--no-backup", help="Do not copy the sources before rewriting them."),
    backup_dir: Optional[Path] = typer.Option(
        None, "--backup-dir", help="Backup directory (default: <root>_bak_<timestamp> next to root)."
    ),
    marker: Optional[str] = typer.Option(None, "--marker", "-m", help="Trace macro name (default: TRACE_MARKER)."),
    empty_bodies: Optional[EmptyBodyPolicy] = typer.Option(
        None, "--empty-bodies", case_sensitive=False, help="Trace functions with empty bodies or skip them."
    ),
    extensions: Optional[List[str]] = typer.Option(
        None, "--ext", "-e", help="File extension to process (repeatable, default: .cpp)."
    ),
    ignore: Optional[List[str]] = typer.Option(
        None, "--ignore", "-i", help="Gitignore-style pattern to skip (repeatable)."
    ),
    workers: int = typer.Option(1, "--workers", "-w", min=1, help="Number of files processed in parallel."),
    json_output: bool = typer.Option(False, "--json", help="Output the run summary as JSON."),
    log: bool = typer.Option(False, "--log", help="Write a run log named log-<timestamp> in the current directory."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write the run log to this path."),
):
    """
    Insert a trace statement at the top of every eligible function below ROOT.
    """
    if log and log_file is None:
        log_file = default_log_path()
    written_log = _configure_logging(log_file)

    overrides = {"marker": marker, "empty_body_policy": empty_bodies}
    try:
        summary = run(
            root,
            config_overrides=overrides,
            extensions=extensions,
            ignore_patterns=ignore,
            dry_run=dry_run,
            backup=not no_backup,
            backup_dir=backup_dir,
            workers=workers,
            show_diff=diff,
        )
    except (ConfigError, BackupError, GrammarNotFoundError) as e:
        logger.error(str(e))
        print_error(str(e), code=type(e).__name__, input_value=str(root))
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(summary.model_dump(), indent=2))
        return

    for report in summary.files:
        if report.edits or report.diagnostics or report.error or report.diff:
            render_file_report(report)
    render_summary(summary)
    if written_log:
        echo(f"Log written to {written_log}")


@app.command()
def plan(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="C++ source file to inspect."),
    marker: Optional[str] = typer.Option(None, "--marker", "-m", help="Trace macro name (default: TRACE_MARKER)."),
    empty_bodies: Optional[EmptyBodyPolicy] = typer.Option(
        None, "--empty-bodies", case_sensitive=False, help="Trace functions with empty bodies or skip them."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output the report as JSON."),
):
    """
    Show what instrumenting FILE would change, without writing it.
    """
    try:
        config = get_instrument_config({"marker": marker, "empty_body_policy": empty_bodies})
        report = process_file(file, config=config, dry_run=True, show_diff=True)
    except (ConfigError, GrammarNotFoundError) as e:
        print_error(str(e), code=type(e).__name__, input_value=str(file))
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(report.model_dump(), indent=2))
        return
    render_file_report(report)


@app.command()
def backup(
    source: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory to back up."),
    destination: Path = typer.Argument(..., help="Backup directory to create or update."),
    extensions: Optional[List[str]] = typer.Option(
        None, "--ext", "-e", help="File extension to copy (repeatable, default: .cpp)."
    ),
    keep_times: bool = typer.Option(
        False, "--keep-times", help="Keep the original modification times instead of stamping the copies now."
    ),
):
    """
    Copy the source files of SOURCE into DESTINATION, keeping relative paths.
    """
    try:
        files = find_source_files(source, extensions=extensions)
        copies = backup_files(files, source, destination, touch=not keep_times)
    except (ConfigError, BackupError) as e:
        print_error(str(e), code=type(e).__name__, input_value=str(source))
        raise typer.Exit(code=1)

    console.print(f"[green]Backed up {len(copies)} files to {escape(str(destination))}[/green]")


@app.command()
def restore(
    backup_root: Path = typer.Argument(..., exists=True, file_okay=False, help="Backup directory made by 'instrument'."),
    target: Path = typer.Argument(..., file_okay=False, help="Source root to restore into."),
):
    """
    Copy every file of a backup back over the source tree.
    """
    try:
        restored = restore_backup(backup_root, target)
    except BackupError as e:
        print_error(str(e), code=type(e).__name__, input_value=str(backup_root))
        raise typer.Exit(code=1)

    console.print(f"[green]Restored {len(restored)} files into {escape(str(target))}[/green]")


@app.command()
def version():
    """
    Prints the current version of tracemark.
    """
    typer.echo(f"tracemark v{__version__}")


if __name__ == "__main__":
    app()
