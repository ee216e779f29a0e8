"""Project context for managing paths and project discovery."""

import os
from pathlib import Path
from typing import Iterator, Optional, Union

from .constants import (
    CONFIG_FILE,
    HISTORY_FILE,
    INDEX_FILE,
    OBJECTS_DIR,
    STAGING_FILE,
    STORE_DIR,
    TRACKED_FILE,
)
from .errors import NotInitializedError
from .ignore import IgnoreSpec


class ProjectContext:
    """Manages project root discovery and path resolution.

    All paths handed to the store are project-relative POSIX strings; this
    class is the only place that converts between those and real paths.
    """

    def __init__(self, start_path: Optional[Path] = None):
        """Initialize context by finding the project root.

        Args:
            start_path: Path to start searching for project root (default: cwd)

        Raises:
            NotInitializedError: If no enclosing directory holds a store
        """
        self.root = self._find_root(Path(start_path) if start_path else Path.cwd())
        if not self.root:
            raise NotInitializedError(
                f"Not inside a minivcs project (no {STORE_DIR} found)"
            )
        self._ignore_spec: Optional[IgnoreSpec] = None

    @classmethod
    def is_initialized(cls, path: Optional[Path] = None) -> bool:
        """Check if a specific directory is initialized (without traversing up)."""
        target = Path(path) if path else Path.cwd()
        return (target / STORE_DIR).is_dir()

    @classmethod
    def init(cls, path: Optional[Path] = None) -> "ProjectContext":
        """Create the store directory at the given path and return its context."""
        target = Path(path) if path else Path.cwd()
        (target / STORE_DIR).mkdir(parents=True, exist_ok=True)
        return cls(target)

    def _find_root(self, start: Path) -> Optional[Path]:
        """Walk up directory tree to find project root."""
        current = start.resolve()

        while current != current.parent:
            if (current / STORE_DIR).is_dir():
                return current
            current = current.parent

        # Check root directory
        if (current / STORE_DIR).is_dir():
            return current
        return None

    def to_project_relative(self, path: Union[str, Path]) -> str:
        """Convert any user path to a project-relative POSIX string.

        Relative paths are interpreted from the current working directory.

        Raises:
            ValueError: If the path lies outside the project
        """
        p = Path(path)
        absolute = p if p.is_absolute() else Path.cwd() / p
        absolute = absolute.resolve()
        try:
            rel = absolute.relative_to(self.root)
        except ValueError:
            raise ValueError(f"Path {path} is outside project {self.root}")
        if rel == Path("."):
            raise ValueError(f"Path {path} is the project root, not a file")
        return rel.as_posix()

    def absolute(self, project_path: Union[str, Path]) -> Path:
        """Get absolute path from project-relative path."""
        return self.root / project_path

    @property
    def store_dir(self) -> Path:
        """Get the store directory (.minivcs)."""
        return self.root / STORE_DIR

    @property
    def config_path(self) -> Path:
        return self.store_dir / CONFIG_FILE

    @property
    def tracked_path(self) -> Path:
        return self.store_dir / TRACKED_FILE

    @property
    def staging_path(self) -> Path:
        return self.store_dir / STAGING_FILE

    @property
    def index_path(self) -> Path:
        return self.store_dir / INDEX_FILE

    @property
    def objects_dir(self) -> Path:
        return self.store_dir / OBJECTS_DIR

    @property
    def history_path(self) -> Path:
        return self.store_dir / HISTORY_FILE

    def get_ignore_spec(self) -> IgnoreSpec:
        """Get the ignore specification (memoized)."""
        if self._ignore_spec is None:
            self._ignore_spec = IgnoreSpec(self.root)
        return self._ignore_spec

    @staticmethod
    def is_store_path(relpath: str) -> bool:
        """Check if a project-relative path lies inside the store directory."""
        return relpath == STORE_DIR or relpath.startswith(f"{STORE_DIR}/")

    def should_ignore(self, relpath: Union[str, Path]) -> bool:
        """Check if a project-relative path matches ignore patterns."""
        if isinstance(relpath, Path):
            relpath = relpath.as_posix()
        return self.get_ignore_spec().is_ignored(relpath)

    def iter_files(
        self,
        start: Optional[Path] = None,
        include_ignored: bool = False,
    ) -> Iterator[str]:
        """Recursively enumerate working-tree files as project-relative paths.

        The store directory is always skipped. Ignored directories are not
        descended into unless ``include_ignored`` is set.

        Args:
            start: Directory to scan (default: project root)
            include_ignored: Also yield files matching ignore patterns
        """
        spec = self.get_ignore_spec()
        start = Path(start).resolve() if start else self.root
        if self.is_store_path(start.relative_to(self.root).as_posix()):
            return

        for dirpath, dirnames, filenames in os.walk(start):
            current = Path(dirpath)
            rel_dir = current.relative_to(self.root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            kept = []
            for name in sorted(dirnames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if self.is_store_path(rel):
                    continue
                if include_ignored or spec.should_traverse(rel):
                    kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if include_ignored or not spec.is_ignored(rel):
                    yield rel
