"""Gitignore-style pattern matching for minivcs."""

from pathlib import Path
from typing import Iterable

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern

from .constants import IGNORE_FILE, STORE_DIR


# Default patterns to always ignore
DEFAULTS = [
    # Version control
    ".git/",
    f"{STORE_DIR}/",

    # Python
    "__pycache__/",
    "*.pyc",
    "*.pyo",

    # Virtual environments
    "venv/",
    ".venv/",

    # IDE and editors
    ".idea/",
    ".vscode/",
    "*.swp",
    "*~",

    # OS files
    ".DS_Store",
    "Thumbs.db",
]


class IgnoreSpec:
    """Manages gitignore-style patterns for file exclusion."""

    def __init__(self, root: Path, extra: Iterable[str] = ()):
        """Initialize ignore spec with default and custom patterns.

        Args:
            root: Project root directory
            extra: Additional patterns to include
        """
        self.root = root
        patterns = list(DEFAULTS)

        # Load project-specific ignore file if it exists
        ignore_file = root / IGNORE_FILE
        if ignore_file.exists():
            for line in ignore_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)

        patterns.extend(extra)
        self.spec = PathSpec.from_lines(GitWildMatchPattern, patterns)

    def is_ignored(self, relpath: str) -> bool:
        """Check if a project-relative POSIX path should be ignored."""
        return self.spec.match_file(relpath)

    def should_traverse(self, dirpath: str) -> bool:
        """Check if a directory should be traversed during scanning.

        Args:
            dirpath: Project-relative directory path in POSIX format

        Returns:
            True if the directory should be traversed
        """
        # The store directory is never part of the working tree
        if dirpath == STORE_DIR or dirpath.startswith(f"{STORE_DIR}/"):
            return False

        if not dirpath.endswith("/"):
            dirpath = dirpath + "/"
        return not self.spec.match_file(dirpath)
