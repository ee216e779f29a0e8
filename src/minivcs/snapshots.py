"""Snapshot store: per-file chains of content-addressed snapshots.

Index file format (line oriented, order matters)::

    #src/main.py
    ab42cd64ef01...;ab42cd64ef01...
    a98bd8be9ae8...;a98bd8be9ae8...
    #README.md
    a0e9720b207e...;a0e9720b207e...

A ``#<path>`` marker line starts a file; the lines up to the next marker are
``<hash>;<storage key>`` pairs, oldest first. In memory each file keeps only
its latest snapshot (Head) and every snapshot links to its predecessor, so the
chain is flipped when written out.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from .blobs import BlobStore
from .constants import FIELD_SEPARATOR, FILE_MARKER, MAX_FILE_SIZE
from .errors import FormatError, NotFoundError, StorageError
from .fileio import read_bytes, read_lines, write_lines
from .hashing import compute_digest, is_valid_digest

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Snapshot:
    """One recorded version of a file.

    Compared by identity: a chain may hold two snapshots with the same hash
    (content reverted to an earlier version) and they are distinct nodes.
    """

    digest: str
    key: str
    path: str
    previous: Optional["Snapshot"] = None


class TrackedFile:
    """A path known to the store and its snapshot chain (latest first)."""

    def __init__(self, path: str, head: Optional[Snapshot] = None):
        self.path = path
        self.head = head

    def __iter__(self) -> Iterator[Snapshot]:
        node = self.head
        while node is not None:
            yield node
            node = node.previous

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        head = self.head.digest[:12] if self.head else None
        return f"TrackedFile(path={self.path!r}, head={head!r}, snapshots={len(self)})"

    def history(self) -> List[Snapshot]:
        """Snapshots in chronological order (oldest first)."""
        return list(reversed(list(self)))

    def search(self, digest: str) -> Optional[Snapshot]:
        """Find the most recent snapshot with the given hash."""
        for node in self:
            if node.digest == digest:
                return node
        return None

    def unlink(self, snapshot: Snapshot) -> bool:
        """Splice a snapshot out of the chain.

        Returns:
            False if the snapshot is not part of this chain
        """
        newer = None
        for node in self:
            if node is snapshot:
                if newer is None:
                    self.head = node.previous
                else:
                    newer.previous = node.previous
                node.previous = None
                return True
            newer = node
        return False


class SnapshotStore:
    """Content-addressed snapshot chains for every file ever staged.

    Paths are project-relative POSIX strings; file contents are read from
    ``work_root / path``.
    """

    def __init__(
        self,
        work_root: Path,
        index_path: Path,
        objects_dir: Path,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.work_root = Path(work_root)
        self.index_path = Path(index_path)
        self.blobs = BlobStore(objects_dir)
        self.max_file_size = max_file_size
        self._files: Dict[str, TrackedFile] = {}
        # Blob keys whose last snapshot was discarded since the last save
        self._orphans: Set[str] = set()

    # ---- Persistence ---------------------------------------------------

    def initialize(self) -> None:
        """Ensure blob directory and index file exist.

        Idempotent: an existing index is left untouched.
        """
        self.blobs.initialize()
        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            self.index_path.touch(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create snapshot index {self.index_path}: {e}") from e

    def load(self) -> None:
        """Read the index file, replacing any in-memory state.

        Raises:
            FormatError: On any malformed line; nothing is loaded in that case
            StorageError: If the index cannot be read
        """
        try:
            lines = read_lines(self.index_path, self.max_file_size)
        except UnicodeDecodeError as e:
            raise FormatError(self.index_path, f"not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read snapshot index {self.index_path}: {e}") from e

        files: Dict[str, TrackedFile] = {}
        current: Optional[TrackedFile] = None
        for line_no, line in enumerate(lines, start=1):
            if not line:
                continue
            if line.startswith(FILE_MARKER):
                path = line[len(FILE_MARKER):]
                if not path:
                    raise FormatError(self.index_path, "empty file declaration", line_no)
                if path in files:
                    raise FormatError(self.index_path, f"duplicate file declaration {path!r}", line_no)
                current = TrackedFile(path)
                files[path] = current
                continue

            if current is None:
                raise FormatError(
                    self.index_path, "snapshot line before any file declaration", line_no
                )
            fields = line.split(FIELD_SEPARATOR)
            if len(fields) != 2 or not all(fields):
                raise FormatError(
                    self.index_path, f"expected '<hash>;<key>', got {line!r}", line_no
                )
            digest, key = fields
            if not (is_valid_digest(digest) and is_valid_digest(key)):
                raise FormatError(self.index_path, f"invalid hash in {line!r}", line_no)
            current.head = Snapshot(digest=digest, key=key, path=current.path, previous=current.head)

        # Declarations without snapshots carry no history
        self._files = {path: f for path, f in files.items() if f.head is not None}
        self._orphans = set()
        logger.debug("Loaded snapshot index: %d files", len(self._files))

    def save(self) -> None:
        """Rewrite the index file from in-memory state.

        Files whose chain became empty are omitted. Blobs left unreferenced by
        discarded snapshots are deleted once the new index is on disk.
        """
        lines: List[str] = []
        for path in sorted(self._files):
            tracked = self._files[path]
            if tracked.head is None:
                continue
            lines.append(f"{FILE_MARKER}{path}")
            lines.extend(
                f"{snap.digest}{FIELD_SEPARATOR}{snap.key}" for snap in tracked.history()
            )
        try:
            write_lines(self.index_path, lines)
        except OSError as e:
            raise StorageError(f"Cannot write snapshot index {self.index_path}: {e}") from e

        for key in sorted(self._orphans):
            if not self._is_referenced(key):
                self.blobs.delete(key)
        self._orphans.clear()

    # ---- Queries -------------------------------------------------------

    def lookup(self, path: str) -> Optional[TrackedFile]:
        """Get the tracked file for a path, if the store knows it."""
        return self._files.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._files

    def files(self) -> List[TrackedFile]:
        """All files with at least one snapshot, sorted by path."""
        return [self._files[p] for p in sorted(self._files)]

    def search_snapshot(self, path: str, digest: str) -> Optional[Snapshot]:
        """Find a snapshot of ``path`` by hash (latest match wins)."""
        tracked = self._files.get(path)
        if tracked is None:
            return None
        return tracked.search(digest)

    def _read_source(self, path: str) -> bytes:
        try:
            return read_bytes(self.work_root / path, self.max_file_size)
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def hash_file(self, path: str) -> str:
        """Compute the current content hash of a working-tree file."""
        return compute_digest(self._read_source(path))

    def has_changed(self, path: str) -> bool:
        """Check if a file differs from its latest snapshot.

        Unknown paths always count as changed.
        """
        tracked = self._files.get(path)
        if tracked is None or tracked.head is None:
            return True
        return self.hash_file(path) != tracked.head.digest

    def _is_referenced(self, digest: str) -> bool:
        return any(snap.key == digest for f in self._files.values() for snap in f)

    # ---- Mutations -----------------------------------------------------

    def add_snapshot(self, path: str, persist: bool = True) -> Snapshot:
        """Record the current content of a file as its new Head.

        The blob is copied before the chain is touched, so on failure the
        file's Head is unchanged. With ``persist=False`` the index is not
        written; the caller saves once its whole batch has succeeded.

        Raises:
            StorageError: If the source cannot be read or the copy fails
        """
        data = self._read_source(path)
        digest = compute_digest(data)
        self.blobs.put(digest, data)

        tracked = self._files.get(path) or TrackedFile(path)
        snapshot = Snapshot(digest=digest, key=digest, path=path, previous=tracked.head)
        tracked.head = snapshot
        self._files[path] = tracked
        logger.debug("Snapshot %s -> %s", path, digest[:12])

        if persist:
            self.save()
        return snapshot

    def discard(self, snapshot: Snapshot, persist: bool = True) -> None:
        """Delete one specific snapshot node.

        The node is spliced out of its chain; Head moves to the predecessor
        when the Head itself is removed. The blob is deleted on the next
        :meth:`save` (immediately unless ``persist=False``), and only when no
        remaining snapshot shares its hash. A file left without snapshots is
        pruned.

        Raises:
            NotFoundError: If the snapshot is not in the store
        """
        tracked = self._files.get(snapshot.path)
        if tracked is None or not tracked.unlink(snapshot):
            raise NotFoundError(
                f"Snapshot {snapshot.digest[:12]} of {snapshot.path} is not in the store"
            )
        if tracked.head is None:
            del self._files[snapshot.path]
            logger.debug("Pruned %s (no snapshots left)", snapshot.path)

        self._orphans.add(snapshot.key)
        logger.debug("Deleted snapshot %s of %s", snapshot.digest[:12], snapshot.path)

        if persist:
            self.save()

    def delete_snapshot(self, path: str, digest: str) -> None:
        """Delete the latest snapshot of ``path`` with the given hash.

        Raises:
            NotFoundError: If the path is unknown or has no such snapshot
        """
        snapshot = self.search_snapshot(path, digest)
        if snapshot is None:
            raise NotFoundError(f"No snapshot {digest[:12]} for {path}")
        self.discard(snapshot)
