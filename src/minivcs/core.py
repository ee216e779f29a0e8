"""Core data models for minivcs."""

import time
from enum import IntEnum
from pathlib import PurePath
from typing import Iterable, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .constants import PARENT_UNRESOLVED
from .hashing import compute_commit_id, decode_text, encode_text


# ============= Changes =============

class ChangeAction(IntEnum):
    """Kind of change recorded for a path.

    Values are persisted in the staging and history files and must not change.
    """

    ADD = 1
    MODIFY = 2
    DELETE = 3

    @property
    def label(self) -> str:
        return {
            ChangeAction.ADD: "new",
            ChangeAction.MODIFY: "modified",
            ChangeAction.DELETE: "deleted",
        }[self]


class CommitChange(BaseModel):
    """A change as recorded inside a finalized commit."""

    model_config = ConfigDict(frozen=True)

    action: ChangeAction
    path: str
    digest: str


# ============= Commits =============

class Commit(BaseModel):
    """An immutable, finalized change-set.

    ``author`` and ``message`` are stored base64-encoded so any text survives
    the line- and JSON-based files unchanged.
    """

    model_config = ConfigDict(frozen=True)

    author: str
    message: str
    timestamp: int
    id: str
    parent: str = PARENT_UNRESOLVED
    changes: Tuple[CommitChange, ...] = Field(min_length=1)

    @classmethod
    def create(
        cls,
        author: str,
        message: str,
        changes: Iterable[CommitChange],
        timestamp: Optional[int] = None,
    ) -> "Commit":
        """Build a commit from plain-text author and message."""
        if timestamp is None:
            timestamp = int(time.time())
        encoded_author = encode_text(author)
        return cls(
            author=encoded_author,
            message=encode_text(message),
            timestamp=timestamp,
            id=compute_commit_id(encoded_author, timestamp),
            parent=PARENT_UNRESOLVED,
            changes=tuple(changes),
        )

    @property
    def author_name(self) -> str:
        return decode_text(self.author)

    @property
    def message_text(self) -> str:
        return decode_text(self.message)

    @property
    def short_id(self) -> str:
        return self.id[:12]


# ============= File Tracking =============

class TrackedFiles(BaseModel):
    """Tracked files list (stored in .minivcs/tracked).

    All paths are stored as project-relative POSIX strings.
    """

    files: Set[str] = Field(default_factory=set)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def add(self, *paths) -> None:
        """Add paths to tracking (normalized to POSIX)."""
        for p in paths:
            self.files.add(PurePath(p).as_posix())

    def remove(self, *paths) -> None:
        """Remove paths from tracking (normalized to POSIX)."""
        for p in paths:
            self.files.discard(PurePath(p).as_posix())
