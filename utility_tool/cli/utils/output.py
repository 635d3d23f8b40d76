"""Output formatting utilities"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from ...constants import EMOJI_SUCCESS, EMOJI_ERROR, EMOJI_WARNING
from ...models import CheckResult, LocalUtility, SyncReport, Version

console = Console()

_STATE_STYLES = {
    "failure": ("red", EMOJI_ERROR),
    "warning": ("yellow", EMOJI_WARNING),
    "ok": ("green", EMOJI_SUCCESS),
}


def _state_cell(state) -> str:
    if state.is_failure:
        style, mark = _STATE_STYLES["failure"]
    elif state.is_warning:
        style, mark = _STATE_STYLES["warning"]
    else:
        style, mark = _STATE_STYLES["ok"]
    return f"[{style}]{mark} {state.value}[/{style}]"


def format_sync_report(report: SyncReport, title: str = "Sync Result") -> None:
    """Format and display a pull or push report"""
    if not report.results:
        console.print("[yellow]Nothing to do[/yellow]")
        return

    if report.pulls:
        table = Table(title="Pulled utilities", box=box.SIMPLE)
        table.add_column("Utility", style="cyan")
        table.add_column("Owner")
        table.add_column("State")
        table.add_column("Version", style="green")
        table.add_column("Previous", style="dim")
        table.add_column("Main", justify="center")
        for r in report.pulls:
            table.add_row(r.name, r.owner or "", _state_cell(r.state), r.version or "",
                          r.previous_version or "", "yes" if r.main else "")
        console.print(table)

    if report.pushes:
        table = Table(title="Pushed utilities", box=box.SIMPLE)
        table.add_column("Utility", style="cyan")
        table.add_column("Owner")
        table.add_column("State")
        table.add_column("Local", style="green")
        table.add_column("Remote", style="dim")
        table.add_column("Main", justify="center")
        for r in report.pushes:
            table.add_row(r.name, r.owner or "", _state_cell(r.state), r.version or "",
                          r.remote_version or "", "yes" if r.main else "")
        console.print(table)

    if report.cleanups:
        table = Table(title="Unreferenced utilities", box=box.SIMPLE)
        table.add_column("Utility", style="cyan")
        table.add_column("State")
        table.add_column("Path", style="dim")
        for r in report.cleanups:
            table.add_row(r.name, _state_cell(r.state), str(r.path))
        console.print(table)

    problems = report.failures + report.warnings
    lines = [f"[bold]Utilities:[/bold] {len(report.results)}"]
    if report.duration is not None:
        lines.append(f"[bold]Duration:[/bold] {report.duration:.2f}s")
    for r in problems:
        if r.message:
            color = "red" if r.state.is_failure else "yellow"
            lines.append(f"[{color}]• {r.name}: {r.message}[/{color}]")

    console.print(Panel(
        "\n".join(lines),
        title=title,
        border_style="red" if report.failures else ("yellow" if report.warnings else "green"),
    ))


def format_check_results(results: List[CheckResult]) -> None:
    """Format and display hash check results"""
    if not results:
        console.print("[yellow]No utilities found[/yellow]")
        return

    table = Table(title="Hash check", box=box.SIMPLE)
    table.add_column("Utility", style="cyan")
    table.add_column("Status")
    table.add_column("Hash", style="dim")

    for r in results:
        status = "[green]match[/green]" if r.matched else "[yellow]mismatch (updated)[/yellow]"
        table.add_row(r.name, status, r.hash[:12])

    console.print(table)


def format_utility_list(utilities: List[LocalUtility], relative) -> None:
    """Format and display the utilities of a project

    Args:
        utilities: Local utilities
        relative: Callable rendering a path relative to the project root
    """
    if not utilities:
        console.print("[yellow]No utilities found[/yellow]")
        return

    table = Table(title="Utilities", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Owner")
    table.add_column("Version", style="green")
    table.add_column("Path", style="dim")
    table.add_column("Private", justify="center")

    for utility in utilities:
        d = utility.descriptor
        table.add_row(d.name, d.owner or "", d.version, relative(utility.path),
                      "yes" if d.private else "")

    console.print(table)


def format_version_list(identifier: str, versions: List[Version],
                        current: Optional[str] = None) -> None:
    """Format and display the remote versions of a utility"""
    if not versions:
        console.print(f"[yellow]No versions of {identifier} found remotely[/yellow]")
        return

    table = Table(title=f"Versions of {identifier}", box=box.SIMPLE)
    table.add_column("Version", style="cyan")
    table.add_column("", justify="center")

    for v in reversed(versions):
        table.add_row(v.raw, "[green]current[/green]" if v.raw == current else "")

    console.print(table)


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[green]Success:[/green] {message}")
