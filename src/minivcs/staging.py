"""Staging area: the pending, not-yet-committed change-set.

Staging file format (line oriented, order does not matter)::

    <action>;<path>;<hash>

with action 1=new, 2=modified, 3=deleted. Each record must match a snapshot
in the snapshot store.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .constants import FIELD_SEPARATOR, MAX_FILE_SIZE
from .core import ChangeAction, Commit, CommitChange
from .errors import (
    AuthorUnavailableError,
    FormatError,
    IntegrityError,
    NotFoundError,
    NothingToCommitError,
    StorageError,
)
from .fileio import read_lines, write_lines
from .history import CommitTree
from .snapshots import Snapshot, SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class Change:
    """A pending change. DELETE changes reference the last snapshot."""

    action: ChangeAction
    snapshot: Snapshot

    @property
    def path(self) -> str:
        return self.snapshot.path

    @property
    def digest(self) -> str:
        return self.snapshot.digest

    def to_commit_change(self) -> CommitChange:
        return CommitChange(action=self.action, path=self.path, digest=self.digest)


class WorkingCommit:
    """Mutable change-set backed by the staging file.

    At most one change per path; staging a path again replaces its change.
    """

    def __init__(self, store: SnapshotStore, path: Path, max_file_size: int = MAX_FILE_SIZE):
        self.store = store
        self.path = Path(path)
        self.max_file_size = max_file_size
        self.changes: List[Change] = []

    def __len__(self) -> int:
        return len(self.changes)

    def __iter__(self):
        return iter(self.changes)

    # ---- Persistence ---------------------------------------------------

    def load(self) -> None:
        """Read the staging file and resolve each record against the store.

        A missing file is an empty change-set.

        Raises:
            FormatError: On a malformed record
            IntegrityError: If a record names a snapshot the store lacks
        """
        try:
            lines = read_lines(self.path, self.max_file_size)
        except FileNotFoundError:
            lines = []
        except UnicodeDecodeError as e:
            raise FormatError(self.path, f"not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read staging file {self.path}: {e}") from e

        changes: List[Change] = []
        seen = set()
        for line_no, line in enumerate(lines, start=1):
            if not line:
                continue
            action_field, sep, rest = line.partition(FIELD_SEPARATOR)
            path, sep2, digest = rest.rpartition(FIELD_SEPARATOR)
            if not (sep and sep2 and path and digest):
                raise FormatError(self.path, f"expected '<action>;<path>;<hash>', got {line!r}", line_no)
            try:
                action = ChangeAction(int(action_field))
            except ValueError as e:
                raise FormatError(self.path, f"unknown action {action_field!r}", line_no) from e
            if path in seen:
                raise FormatError(self.path, f"duplicate change for {path!r}", line_no)
            seen.add(path)

            snapshot = self.store.search_snapshot(path, digest)
            if snapshot is None:
                raise IntegrityError(path, digest)
            changes.append(Change(action, snapshot))

        self.changes = changes

    def save(self) -> None:
        """Rewrite the staging file."""
        lines = [
            f"{int(c.action)}{FIELD_SEPARATOR}{c.path}{FIELD_SEPARATOR}{c.digest}"
            for c in self.changes
        ]
        try:
            write_lines(self.path, lines)
        except OSError as e:
            raise StorageError(f"Cannot write staging file {self.path}: {e}") from e

    def clear(self) -> None:
        """Drop all changes and truncate the staging file."""
        self.changes = []
        self.save()

    # ---- State transitions ---------------------------------------------

    def find(self, path: str) -> Optional[Change]:
        for change in self.changes:
            if change.path == path:
                return change
        return None

    def has(self, path: str) -> bool:
        return self.find(path) is not None

    def _remove(self, change: Change) -> None:
        # Order is not significant: swap with last and pop
        i = next(i for i, c in enumerate(self.changes) if c is change)
        self.changes[i] = self.changes[-1]
        self.changes.pop()

    def stage(self, path: str, persist: bool = True) -> Change:
        """Snapshot a file and record it as new or modified.

        A pending change for the same path is replaced and its snapshot
        deleted. A path first added in this change-set stays ``ADD``.
        ``persist`` is passed on to the snapshot store.

        Raises:
            StorageError: If the snapshot cannot be taken
        """
        previous = self.find(path)
        if path in self.store:
            action = ChangeAction.MODIFY
        else:
            action = ChangeAction.ADD
        if previous is not None and previous.action == ChangeAction.ADD:
            action = ChangeAction.ADD

        snapshot = self.store.add_snapshot(path, persist=persist)

        if previous is not None:
            self._remove(previous)
            if previous.action != ChangeAction.DELETE:
                self.store.discard(previous.snapshot, persist=persist)

        change = Change(action, snapshot)
        self.changes.append(change)
        logger.debug("Staged %s (%s) at %s", path, action.label, snapshot.digest[:12])
        return change

    def stage_deletion(self, path: str, persist: bool = True) -> Optional[Change]:
        """Record the removal of a file, referencing its last snapshot.

        Returns None when the file only existed in this change-set: unstaging
        its addition is all there is to do.

        Raises:
            NotFoundError: If the store has no snapshot of the path
        """
        tracked = self.store.lookup(path)
        if tracked is None:
            raise NotFoundError(f"No snapshot of {path} to delete")
        if self.has(path):
            self.unstage(path, persist=persist)
            tracked = self.store.lookup(path)
            if tracked is None:
                return None
        change = Change(ChangeAction.DELETE, tracked.head)
        self.changes.append(change)
        logger.debug("Staged deletion of %s", path)
        return change

    def unstage(self, path: str, persist: bool = True) -> Change:
        """Remove the pending change for a path and undo its snapshot.

        Raises:
            NotFoundError: If no change is pending for the path
        """
        change = self.find(path)
        if change is None:
            raise NotFoundError(f"Unknown file to unstage: {path}")
        self._remove(change)
        if change.action != ChangeAction.DELETE:
            self.store.discard(change.snapshot, persist=persist)
        logger.debug("Unstaged %s", path)
        return change

    def finalize(
        self,
        message: str,
        author: Optional[str],
        history: CommitTree,
        timestamp: Optional[int] = None,
    ) -> Commit:
        """Turn the pending changes into a commit.

        The commit is appended to ``history`` and saved, then the staging
        file is truncated. A crash between the two writes leaves the changes
        both committed and staged.

        Raises:
            AuthorUnavailableError: If no author is given
            NothingToCommitError: If nothing is staged
        """
        if not author:
            raise AuthorUnavailableError()
        if not self.changes:
            raise NothingToCommitError()

        changes, self.changes = self.changes, []
        commit = Commit.create(
            author=author,
            message=message,
            changes=[c.to_commit_change() for c in changes],
            timestamp=timestamp,
        )
        history.append(commit)
        history.save()
        self.clear()
        logger.info("Committed %s (%d changes)", commit.short_id, len(commit.changes))
        return commit
