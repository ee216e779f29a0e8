"""Commit history tree.

The history is an n-ary tree of commits. The first child of a node is its
main continuation; later children are alternative lines kept in insertion
order. The tree is stored as one JSON document listing the nodes in
preorder, each with the number of children it owns::

    {
      "version": 1,
      "head": "<commit id of the head node, or null>",
      "nodes": [
        {"commit": null, "children": 1},
        {"commit": {...}, "children": 0}
      ]
    }

The first record is the root. Each node's children follow it, each one
together with its own subtree, so the nesting is implied by the counts and
the document stays flat however deep the history grows. The parent link of
each node is not stored and is rebuilt after loading.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional

from pydantic import ValidationError

from .constants import HISTORY_VERSION, MAX_FILE_SIZE
from .core import Commit
from .errors import FormatError, StorageError
from .fileio import read_bytes, write_text_atomic

logger = logging.getLogger(__name__)


class CommitNode:
    """A position in the history tree.

    The root node carries no commit.
    """

    def __init__(self, commit: Optional[Commit] = None):
        self.commit = commit
        self.children: List["CommitNode"] = []
        # Non-owning back-reference, rebuilt after load
        self.parent: Optional["CommitNode"] = None

    def __repr__(self) -> str:
        label = self.commit.short_id if self.commit else "<root>"
        return f"CommitNode({label}, children={len(self.children)})"

    @property
    def is_root(self) -> bool:
        return self.commit is None

    @property
    def main_child(self) -> Optional["CommitNode"]:
        """First child, or None for a leaf."""
        return self.children[0] if self.children else None

    def add_child(self, commit: Commit) -> "CommitNode":
        """Append a commit as the last child of this node."""
        node = CommitNode(commit)
        node.parent = self
        self.children.append(node)
        return node


class CommitTree:
    """Append-only history of finalized commits."""

    def __init__(self, path: Path, max_file_size: int = MAX_FILE_SIZE):
        self.path = Path(path)
        self.max_file_size = max_file_size
        self.root = CommitNode()
        self.head = self.root

    def __len__(self) -> int:
        return sum(1 for node in self.walk() if not node.is_root)

    # ---- Queries -------------------------------------------------------

    def walk(self) -> Iterator[CommitNode]:
        """Visit every node, parents before children, main line first."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, commit_id: str) -> Optional[CommitNode]:
        """Find the node holding a commit id."""
        for node in self.walk():
            if node.commit is not None and node.commit.id == commit_id:
                return node
        return None

    def get_main_child(self, node: CommitNode) -> Optional[Commit]:
        """Commit of the node's main continuation, or None for a leaf."""
        child = node.main_child
        return child.commit if child else None

    def main_line(self) -> Iterator[Commit]:
        """Commits from the first one along main children (oldest first)."""
        node = self.root.main_child
        while node is not None:
            yield node.commit
            node = node.main_child

    # ---- Mutations -----------------------------------------------------

    def append(self, commit: Commit) -> CommitNode:
        """Add a commit as the last child of the head node and advance head."""
        node = self.head.add_child(commit)
        self.head = node
        logger.debug("Appended commit %s (%d changes)", commit.short_id, len(commit.changes))
        return node

    # ---- Persistence ---------------------------------------------------

    def save(self) -> None:
        """Write the whole tree (parent links are not stored)."""
        records = [
            {
                "commit": node.commit.model_dump(mode="json") if node.commit else None,
                "children": len(node.children),
            }
            for node in self.walk()
        ]
        document = {
            "version": HISTORY_VERSION,
            "head": self.head.commit.id if self.head.commit else None,
            "nodes": records,
        }
        try:
            write_text_atomic(self.path, json.dumps(document, indent=1))
        except OSError as e:
            raise StorageError(f"Cannot write history {self.path}: {e}") from e

    def load(self) -> None:
        """Read the tree, replacing in-memory state.

        A missing or empty file is an empty history.

        Raises:
            FormatError: If the document is malformed
            StorageError: If the file cannot be read
        """
        try:
            raw = read_bytes(self.path, self.max_file_size)
        except FileNotFoundError:
            raw = b""
        except OSError as e:
            raise StorageError(f"Cannot read history {self.path}: {e}") from e

        if not raw.strip():
            self.root = CommitNode()
            self.head = self.root
            return

        try:
            document = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            raise FormatError(self.path, f"invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise FormatError(self.path, "top level must be an object")
        if document.get("version") != HISTORY_VERSION:
            raise FormatError(self.path, f"unsupported version {document.get('version')!r}")

        root = self._build(document.get("nodes"))
        self._relink(root)
        self.root = root

        head_id = document.get("head")
        if head_id is None:
            self.head = self.root
        else:
            # Same author within one second yields the same id; the newest wins
            head = None
            for node in self.walk():
                if node.commit is not None and node.commit.id == head_id:
                    head = node
            if head is None:
                raise FormatError(self.path, f"head commit {head_id!r} is not in the tree")
            self.head = head
        logger.debug("Loaded history: %d commits", len(self))

    def _build(self, records: Any) -> CommitNode:
        """Create nodes from preorder records; parent links are left unset."""
        if not isinstance(records, list) or not records:
            raise FormatError(self.path, "'nodes' must be a non-empty list")

        root: Optional[CommitNode] = None
        # [node, children still to be read]
        open_nodes: List[List[Any]] = []
        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise FormatError(self.path, f"node {i} must be an object")
            count = record.get("children")
            if not isinstance(count, int) or isinstance(count, bool) or count < 0:
                raise FormatError(self.path, f"node {i} needs a non-negative 'children' count")

            commit_data = record.get("commit")
            node = CommitNode()
            if root is None:
                if commit_data is not None:
                    raise FormatError(self.path, "root node must not carry a commit")
                root = node
            else:
                if commit_data is None:
                    raise FormatError(self.path, f"node {i} is not the root but has no commit")
                try:
                    node.commit = Commit.model_validate(commit_data)
                except ValidationError as e:
                    raise FormatError(self.path, f"invalid commit in node {i}: {e}") from e

                while open_nodes and open_nodes[-1][1] == 0:
                    open_nodes.pop()
                if not open_nodes:
                    raise FormatError(self.path, f"node {i} does not belong to any parent")
                open_nodes[-1][0].children.append(node)
                open_nodes[-1][1] -= 1
            open_nodes.append([node, count])

        if any(remaining for _, remaining in open_nodes):
            raise FormatError(self.path, "document ends before all children were listed")
        return root

    @staticmethod
    def _relink(root: CommitNode) -> None:
        """Point every child's parent link at the node that contains it."""
        stack = [root]
        while stack:
            node = stack.pop()
            for child in node.children:
                child.parent = node
                stack.append(child)
