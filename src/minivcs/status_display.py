"""Display logic for the status and log commands."""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core import ChangeAction, Commit
from .utils import format_timestamp, humanize_age
from .working_state import FileState, StatusReport


_ACTION_TEXT = {
    ChangeAction.ADD: "[green]new[/green]",
    ChangeAction.MODIFY: "[yellow]modified[/yellow]",
    ChangeAction.DELETE: "[red]deleted[/red]",
}

_STATE_TEXT = {
    FileState.UNMODIFIED: "[dim]unmodified[/dim]",
    FileState.MODIFIED: "[yellow]modified[/yellow]",
    FileState.DELETED: "[red]deleted[/red]",
    FileState.UNTRACKED: "[dim]untracked[/dim]",
}


def display_status(report: StatusReport, console: Console, show_untracked: bool = False):
    """Display staged changes, tracked files and (optionally) untracked files.

    Args:
        report: Computed working state
        console: Rich console for output
        show_untracked: Also list files that are not tracked
    """
    if report.staged:
        console.print(f"\n[bold]Changes to be committed ({len(report.staged)}):[/bold]")
        for row in report.staged:
            console.print(f"  {_ACTION_TEXT[row.action]}: {escape(row.path)}")
    else:
        console.print("\n[dim]No changes staged for commit[/dim]")

    # Staged files that still match their staged snapshot are already listed above
    rows = [
        entry for entry in report.tracked
        if not (entry.is_staged and entry.state == FileState.UNMODIFIED)
    ]
    if rows:
        table = Table(title=f"\nTracked files ({len(report.tracked)})")
        table.add_column("File", style="cyan")
        table.add_column("State")
        table.add_column("Staged")
        for entry in rows:
            staged = _ACTION_TEXT[entry.staged] if entry.staged else ""
            table.add_row(escape(entry.path), _STATE_TEXT[entry.state], staged)
        console.print(table)
    elif not report.tracked:
        console.print("\n[dim]No tracked files[/dim]")

    if report.has_changes:
        console.print("\n[dim]Stage changes with: minivcs add <path>[/dim]")
    if report.by_state(FileState.DELETED):
        console.print("[dim]Stage deletions with: minivcs add --deleted .[/dim]")

    if show_untracked and report.untracked:
        console.print(f"\n[bold]Untracked files ({len(report.untracked)}):[/bold]")
        for path in report.untracked[:20]:
            console.print(f"  [red]?[/red] {escape(path)}")
        if len(report.untracked) > 20:
            console.print(f"  [dim]... and {len(report.untracked) - 20} more[/dim]")


def display_log(commits: List[Commit], console: Console, now: Optional[float] = None):
    """Display commits newest first.

    Args:
        commits: Commits to show, in display order
        console: Rich console for output
        now: Reference time for relative ages (tests)
    """
    if not commits:
        console.print("[yellow]No commits yet[/yellow]")
        return

    for commit in commits:
        console.print(f"\n[yellow]commit {commit.id}[/yellow]")
        console.print(f"Author: {commit.author_name}")
        console.print(
            f"Date:   {format_timestamp(commit.timestamp)} "
            f"[dim]({humanize_age(commit.timestamp, now)})[/dim]"
        )
        console.print()
        for line in commit.message_text.splitlines() or [""]:
            console.print(f"    {line}", markup=False, highlight=False)
        console.print()
        for change in commit.changes:
            console.print(f"  {_ACTION_TEXT[change.action]}: {escape(change.path)}")
