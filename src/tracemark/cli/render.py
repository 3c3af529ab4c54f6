"""
Rendering of run summaries and plans for the terminal.
"""

from rich.markup import escape
from rich.table import Table

from tracemark.cli.config import CLIConfig
from tracemark.cli.output import echo, get_console
from tracemark.schemas import FileReport, RunSummary

console = get_console()


def _short(snippet: str) -> str:
    text = " ".join(snippet.split())
    if len(text) > CLIConfig.MAX_SNIPPET_CHARS:
        return text[:CLIConfig.MAX_SNIPPET_CHARS - 3] + "..."
    return text


def render_file_report(report: FileReport) -> None:
    """Per-file detail: instrumented functions in green, diagnostics in red."""
    if CLIConfig.is_machine_mode():
        echo(f"{report.status} {report.path} edits={report.edits} skipped={report.already_instrumented} diagnostics={len(report.diagnostics)}")
        for name in report.instrumented:
            echo(f"  + {name}")
        for d in report.diagnostics:
            echo(f"  ! {d.reason} {d.label} line={d.line}: {_short(d.snippet)}")
        if report.error:
            echo(f"  error: {report.error}")
        if report.diff:
            echo(report.diff)
        return

    console.print(f"[bold]{escape(report.path)}[/bold]")
    for name in report.instrumented:
        console.print(f"  [green]function_name: {escape(name)}[/green]")
    for d in report.diagnostics:
        line = f":{d.line}" if d.line else ""
        console.print(f"  [red]{escape(d.label)} has error ({d.reason}){line}[/red] {escape(_short(d.snippet))}")
    if report.error:
        console.print(f"  [bold red]failed:[/bold red] {escape(report.error)}")
    if report.diff:
        console.print(escape(report.diff))


def render_summary(summary: RunSummary) -> None:
    """Totals for a run, as a table in human mode."""
    if CLIConfig.is_machine_mode():
        echo(
            f"files={summary.total_files} edits={summary.total_edits} "
            f"diagnostics={summary.total_diagnostics} failed={len(summary.failed_files)} "
            f"backup={summary.backup_dir or '-'} dry_run={summary.dry_run}"
        )
        return

    table = Table(title="Instrumentation Summary")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Traced", justify="right", style="green")
    table.add_column("Already", justify="right")
    table.add_column("Diagnostics", justify="right", style="red")

    status_color = {"instrumented": "green", "unchanged": "white", "failed": "red"}
    for report in summary.files:
        color = status_color.get(report.status, "white")
        table.add_row(
            escape(report.path),
            f"[{color}]{report.status}[/{color}]",
            str(report.edits),
            str(report.already_instrumented),
            str(len(report.diagnostics)),
        )

    console.print(table)
    if summary.backup_dir:
        console.print(f"[dim]Backup:[/dim] {escape(summary.backup_dir)}")
    console.print(
        f"[bold]{summary.total_edits}[/bold] functions traced in {summary.total_files} files "
        f"({summary.duration:.2f}s)"
    )
