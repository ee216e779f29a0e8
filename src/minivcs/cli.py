"""CLI for minivcs."""

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import VcsConfig, load_config, load_project_config, save_config
from .constants import MINIVCS_VERSION, STORE_DIR
from .context import ProjectContext
from .errors import NotInitializedError, VcsError
from .ops import (
    add_files,
    clear_repository,
    commit as ops_commit,
    init_repository,
    list_commits,
    remove_files,
)
from .repository import Repository
from .status_display import display_log, display_status
from .working_state import compute_status


app = typer.Typer(help="""\
Minimal version control: snapshot tracked files into a local
content-addressed store, stage changes, and record them as commits.""")

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or os.environ.get("DEBUG") else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(e: Exception) -> None:
    console.print(f"[red]✗[/red] {escape(str(e))}")
    raise typer.Exit(1)


def require_project_context() -> ProjectContext:
    """Get project context or exit with a helpful message.

    Raises:
        typer.Exit: If not in a project directory
    """
    try:
        return ProjectContext()
    except NotInitializedError as e:
        console.print(f"[red]✗[/red] {e}")
        console.print()
        console.print("To initialize a new project, run:")
        console.print("  [cyan]minivcs init[/cyan]")
        raise typer.Exit(1)


def open_repository(author: Optional[str] = None) -> Repository:
    """Build the repository handle for this command, exiting on error."""
    ctx = require_project_context()
    try:
        config = load_config(ctx, author=author)
        return Repository.open(ctx, config)
    except VcsError as e:
        _fail(e)


def _version_callback(value: bool):
    if value:
        console.print(f"minivcs {MINIVCS_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    _configure_logging(verbose)


@app.command()
def init(
    path: Optional[str] = typer.Argument(None, help="Directory to initialize (default: current)"),
):
    """Create an empty store in a directory.

    Examples:
        minivcs init            # Initialize current directory
        minivcs init my-project # Create and initialize my-project/
    """
    target = Path(path) if path else Path.cwd()
    try:
        ctx = init_repository(target)
    except VcsError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Initialized empty store in {ctx.store_dir}")


@app.command()
def add(
    files: List[Path] = typer.Argument(..., help="Files or directories to stage"),
    force: bool = typer.Option(False, "--force", help="Add ignored files anyway"),
    deleted: bool = typer.Option(
        False, "--deleted", help="Also stage deletion of tracked files missing from disk"
    ),
):
    """Track files and stage their changes.

    Recursively adds all files in directories. Respects .minivcsignore.
    Unchanged files are registered but not staged again.

    Examples:
        minivcs add src/main.py        # Stage single file
        minivcs add src/ data/         # Stage all files in directories
        minivcs add --deleted .        # Stage everything, including deletions
        minivcs add --force build.log  # Force-add ignored file
    """
    repo = open_repository()
    try:
        result = add_files(repo, files, force=force, include_deleted=deleted)
    except VcsError as e:
        _fail(e)

    if result.staged:
        console.print(f"[green]✓[/green] Staged {len(result.staged)} files:")
        for file in result.staged:
            mark = "[green]+[/green]" if file in result.registered else "[yellow]~[/yellow]"
            console.print(f"  {mark} {escape(file)}")
    if result.deleted:
        console.print(f"[green]✓[/green] Staged {len(result.deleted)} deletions:")
        for file in result.deleted:
            console.print(f"  [red]-[/red] {escape(file)}")
    if result.unstaged:
        console.print(
            f"[yellow]⚠[/yellow] Unstaged {len(result.unstaged)} deleted files that were never committed:"
        )
        for file in result.unstaged:
            console.print(f"  {escape(file)}")
    if result.unchanged:
        console.print(f"[dim]{len(result.unchanged)} files unchanged[/dim]")

    if result.skipped_ignored:
        console.print("[yellow]⚠[/yellow] The following paths are ignored by .minivcsignore:")
        for file in result.skipped_ignored:
            console.print(f"  {escape(file)}")
        console.print("\n[dim]Hint: Use --force to add ignored files anyway.[/dim]")

    if not (result.staged or result.deleted or result.unstaged or result.unchanged
            or result.skipped_ignored):
        console.print("[yellow]No files added[/yellow]")


@app.command()
def rm(
    files: List[Path] = typer.Argument(..., help="Files to unstage or untrack"),
):
    """Unstage files, or stop tracking files with nothing staged.

    Files on disk are never deleted.

    Examples:
        minivcs rm src/draft.py   # Unstage pending change
        minivcs rm old/notes.txt  # Stop tracking
    """
    repo = open_repository()
    try:
        result = remove_files(repo, files)
    except VcsError as e:
        _fail(e)

    if result.unstaged:
        console.print(f"[green]✓[/green] Unstaged {len(result.unstaged)} files:")
        for file in result.unstaged:
            console.print(f"  [yellow]~[/yellow] {escape(file)}")
    if result.untracked:
        console.print(f"[green]✓[/green] Untracked {len(result.untracked)} files:")
        for file in result.untracked:
            console.print(f"  [red]-[/red] {escape(file)}")


@app.command()
def status(
    untracked: bool = typer.Option(False, "-u", "--untracked", help="Show untracked files"),
    include_ignored: bool = typer.Option(False, "--include-ignored", help="Include ignored files"),
):
    """Show staged changes and the state of tracked files.

    Examples:
        minivcs status                     # Staged and tracked files
        minivcs status -u                  # Also show untracked files
        minivcs status -u --include-ignored
    """
    repo = open_repository()
    try:
        report = compute_status(repo, include_ignored=include_ignored)
    except VcsError as e:
        _fail(e)

    console.print(f"[bold]Project:[/bold] {escape(str(repo.ctx.root))}")
    display_status(report, console, show_untracked=untracked or include_ignored)


@app.command()
def commit(
    message: str = typer.Option(..., "-m", "--message", help="Commit message"),
    author: Optional[str] = typer.Option(None, "--author", help="Override configured author"),
):
    """Record staged changes as a new commit.

    Examples:
        minivcs commit -m "Add parser"
        minivcs commit -m "Fix typo" --author "Ada <ada@example.org>"
    """
    repo = open_repository(author=author)
    try:
        new_commit = ops_commit(repo, message)
    except VcsError as e:
        _fail(e)

    console.print(
        f"[green]✓[/green] Committed [yellow]{new_commit.short_id}[/yellow] "
        f"({len(new_commit.changes)} changes)"
    )


@app.command()
def log():
    """Show the commit history (newest first)."""
    repo = open_repository()
    display_log(list_commits(repo), console)


@app.command("config")
def config_cmd(
    author: Optional[str] = typer.Option(None, "--author", help="Set the project's commit author"),
    max_file_size: Optional[int] = typer.Option(
        None, "--max-file-size", help="Set the largest file (bytes) the store will read"
    ),
):
    """Show the effective configuration, or set project values.

    Examples:
        minivcs config                     # Show effective settings
        minivcs config --author "Ada <ada@example.org>"
    """
    ctx = require_project_context()
    try:
        if author is not None or max_file_size is not None:
            project_config = load_project_config(ctx)
            updates = {}
            if author is not None:
                updates["author"] = author
            if max_file_size is not None:
                updates["max_file_size"] = max_file_size
            save_config(VcsConfig(**{**project_config.model_dump(exclude_defaults=True), **updates}), ctx)
            console.print(f"[green]✓[/green] Updated {ctx.config_path}")
        effective = load_config(ctx)
    except (VcsError, ValueError) as e:
        _fail(e)

    console.print(f"[bold]author:[/bold] {escape(effective.author or '(not set)')}")
    console.print(f"[bold]max_file_size:[/bold] {effective.max_file_size}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm removal of all history"),
):
    """Remove the store and all recorded history (working files are kept)."""
    ctx = require_project_context()
    if not yes:
        console.print(f"[yellow]⚠[/yellow] This deletes {STORE_DIR}/ including all snapshots and commits.")
        console.print("Re-run with [cyan]--yes[/cyan] to confirm.")
        raise typer.Exit(1)
    try:
        clear_repository(ctx)
    except VcsError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Removed {ctx.store_dir}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
