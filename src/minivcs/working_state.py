"""Working state: classify tracked and untracked files against the store."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .core import ChangeAction
from .ops import load_tracked
from .repository import Repository


class FileState(str, Enum):
    """State of a working-tree file relative to its latest snapshot."""

    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNTRACKED = "untracked"


@dataclass
class StagedRow:
    """A pending change for UI display."""
    path: str
    action: ChangeAction
    digest: str


@dataclass
class StatusEntry:
    """A tracked file and its state."""
    path: str
    state: FileState
    staged: Optional[ChangeAction] = None

    @property
    def is_staged(self) -> bool:
        return self.staged is not None


@dataclass(slots=True)
class StatusReport:
    """High-level status for UI display."""

    staged: List[StagedRow] = field(default_factory=list)
    tracked: List[StatusEntry] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    def by_state(self, state: FileState) -> List[StatusEntry]:
        return [entry for entry in self.tracked if entry.state == state]

    @property
    def has_changes(self) -> bool:
        """Check if anything differs from the last snapshots."""
        return any(entry.state != FileState.UNMODIFIED for entry in self.tracked)

    @property
    def is_clean(self) -> bool:
        return not self.staged and not self.has_changes


def compute_status(repo: Repository, include_ignored: bool = False) -> StatusReport:
    """
    Classify every tracked file and list untracked ones.

    Read-only: nothing is staged and no file in the store is written.

    - tracked and present: modified or unmodified against its latest snapshot
      (which is the staged snapshot when a change is pending)
    - tracked and absent: deleted
    - present but not tracked: untracked (ignored files only on request)
    """
    ctx = repo.ctx
    tracked = load_tracked(ctx, repo.config.max_file_size)
    report = StatusReport()

    for change in sorted(repo.staging, key=lambda c: c.path):
        report.staged.append(StagedRow(change.path, change.action, change.digest))

    for path in sorted(tracked.files):
        pending = repo.staging.find(path)
        staged = pending.action if pending else None

        if not ctx.absolute(path).is_file():
            report.tracked.append(StatusEntry(path, FileState.DELETED, staged))
        elif repo.store.has_changed(path):
            report.tracked.append(StatusEntry(path, FileState.MODIFIED, staged))
        else:
            report.tracked.append(StatusEntry(path, FileState.UNMODIFIED, staged))

    report.untracked = sorted(
        path for path in ctx.iter_files(include_ignored=include_ignored)
        if path not in tracked
    )
    return report
