"""Core operations for minivcs.

Each operation takes an explicit :class:`~minivcs.repository.Repository` (or
a :class:`~minivcs.context.ProjectContext` for scaffolding) and returns a
plain result object; printing is left to the CLI.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .constants import MAX_FILE_SIZE
from .context import ProjectContext
from .core import ChangeAction, Commit, TrackedFiles
from .errors import AlreadyExistsError, FormatError, NotFoundError, StorageError, VcsError
from .fileio import read_lines, write_lines
from .history import CommitTree
from .repository import Repository
from .snapshots import SnapshotStore

logger = logging.getLogger(__name__)


# ============= Tracked Files =============

def load_tracked(ctx: ProjectContext, limit: int = MAX_FILE_SIZE) -> TrackedFiles:
    """Load tracked files list."""
    try:
        lines = read_lines(ctx.tracked_path, limit)
    except FileNotFoundError:
        return TrackedFiles()
    except UnicodeDecodeError as e:
        raise FormatError(ctx.tracked_path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise StorageError(f"Cannot read tracked files {ctx.tracked_path}: {e}") from e

    return TrackedFiles(files={line.strip() for line in lines if line.strip()})


def save_tracked(tracked: TrackedFiles, ctx: ProjectContext) -> None:
    """Save tracked files list atomically."""
    try:
        write_lines(ctx.tracked_path, sorted(tracked.files))
    except OSError as e:
        raise StorageError(f"Cannot write tracked files {ctx.tracked_path}: {e}") from e


# ============= Scaffolding =============

def init_repository(path: Optional[Path] = None) -> ProjectContext:
    """Create an empty store in ``path`` (default: cwd).

    Raises:
        AlreadyExistsError: If the directory already holds a store
        StorageError: If the store cannot be created
    """
    target = Path(path) if path else Path.cwd()
    if ProjectContext.is_initialized(target):
        raise AlreadyExistsError(f"Project already initialized in {target.resolve()}")

    try:
        target.mkdir(parents=True, exist_ok=True)
        ctx = ProjectContext.init(target)
    except OSError as e:
        raise StorageError(f"Cannot create store in {target}: {e}") from e

    SnapshotStore(ctx.root, ctx.index_path, ctx.objects_dir).initialize()
    save_tracked(TrackedFiles(), ctx)
    try:
        write_lines(ctx.staging_path, [])
    except OSError as e:
        raise StorageError(f"Cannot create staging file {ctx.staging_path}: {e}") from e
    CommitTree(ctx.history_path).save()

    logger.info("Initialized store in %s", ctx.store_dir)
    return ctx


def clear_repository(ctx: ProjectContext) -> None:
    """Remove the store directory and everything recorded in it.

    Working-tree files are not touched.
    """
    try:
        shutil.rmtree(ctx.store_dir)
    except OSError as e:
        raise StorageError(f"Cannot remove {ctx.store_dir}: {e}") from e
    logger.info("Removed store %s", ctx.store_dir)


# ============= Add / Remove =============

@dataclass
class AddResult:
    """Outcome of :func:`add_files`."""

    registered: List[str] = field(default_factory=list)
    staged: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unstaged: List[str] = field(default_factory=list)
    skipped_ignored: List[str] = field(default_factory=list)


@dataclass
class RemoveResult:
    """Outcome of :func:`remove_files`."""

    unstaged: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)


def _resolve(ctx: ProjectContext, path) -> Tuple[Path, str]:
    """Resolve a user path to (absolute path, project-relative path).

    The project root itself maps to an empty relative path.

    Raises:
        NotFoundError: If the path lies outside the project
    """
    p = Path(path)
    absolute = (p if p.is_absolute() else Path.cwd() / p).resolve()
    if absolute == ctx.root:
        return absolute, ""
    try:
        return absolute, ctx.to_project_relative(absolute)
    except ValueError as e:
        raise NotFoundError(str(e)) from e


def _under(rel: str, prefix: str) -> bool:
    return not prefix or rel == prefix or rel.startswith(prefix + "/")


def add_files(
    repo: Repository,
    paths: Iterable,
    force: bool = False,
    include_deleted: bool = False,
) -> AddResult:
    """Register paths and stage those whose content changed.

    Directories are expanded recursively. Ignored files are skipped unless
    ``force`` is set. With ``include_deleted``, tracked files under the given
    paths that are gone from disk are staged as deletions.

    Every path is validated before anything is staged. A deleted file that
    only existed in the pending change-set is unstaged and untracked.

    The snapshot index, the staging file and the registry are written only
    after every path has been staged; a failure leaves all three as they were.

    Raises:
        NotFoundError: If a path does not exist (or is outside the project)
        StorageError: If a file cannot be snapshotted
    """
    ctx = repo.ctx
    tracked = load_tracked(ctx, repo.config.max_file_size)
    result = AddResult()

    resolved: List[Tuple[Path, str]] = []
    for path in paths:
        absolute, rel = _resolve(ctx, path)
        if not absolute.exists():
            if not (include_deleted and rel in tracked):
                raise NotFoundError(f"File not found: {path}")
        resolved.append((absolute, rel))

    candidates: List[str] = []
    for absolute, rel in resolved:
        if absolute.is_dir():
            candidates.extend(ctx.iter_files(absolute, include_ignored=force))
        elif absolute.exists():
            if ctx.is_store_path(rel) or (not force and ctx.should_ignore(rel)):
                result.skipped_ignored.append(rel)
                continue
            candidates.append(rel)

    try:
        seen = set()
        for rel in candidates:
            if rel in seen:
                continue
            seen.add(rel)

            if rel not in tracked:
                tracked.add(rel)
                result.registered.append(rel)

            if repo.store.has_changed(rel):
                repo.staging.stage(rel, persist=False)
                result.staged.append(rel)
            else:
                result.unchanged.append(rel)

        if include_deleted:
            prefixes = [rel for _, rel in resolved]
            for rel in sorted(tracked.files):
                if ctx.absolute(rel).exists() or not any(_under(rel, p) for p in prefixes):
                    continue
                pending = repo.staging.find(rel)
                if pending is not None and pending.action == ChangeAction.DELETE:
                    continue
                if rel not in repo.store:
                    continue
                if repo.staging.stage_deletion(rel, persist=False) is None:
                    # Only ever existed in this change-set
                    tracked.remove(rel)
                    result.unstaged.append(rel)
                else:
                    result.deleted.append(rel)

        repo.store.save()
    except VcsError:
        # Back to what is on disk
        repo.store.load()
        repo.staging.load()
        raise

    repo.staging.save()
    save_tracked(tracked, ctx)
    logger.debug(
        "add: %d registered, %d staged, %d deleted",
        len(result.registered), len(result.staged), len(result.deleted),
    )
    return result


def remove_files(repo: Repository, paths: Iterable) -> RemoveResult:
    """Undo staging for paths, or stop tracking paths with nothing staged.

    A path with a pending change is unstaged; if it was never committed it
    is also dropped from the registry. A path with nothing pending is
    deregistered. Files on disk are never touched.

    Raises:
        NotFoundError: If a path is not tracked (checked before any change)
    """
    ctx = repo.ctx
    tracked = load_tracked(ctx, repo.config.max_file_size)
    result = RemoveResult()

    targets: List[str] = []
    for path in paths:
        try:
            _, rel = _resolve(ctx, path)
        except NotFoundError:
            rel = None
        if not rel or (rel not in tracked and not repo.staging.has(rel)):
            raise NotFoundError(f"pathspec '{path}' did not match any tracked files")
        if rel not in targets:
            targets.append(rel)

    for rel in targets:
        if repo.staging.has(rel):
            repo.staging.unstage(rel, persist=False)
            result.unstaged.append(rel)
            if rel not in repo.store:
                tracked.remove(rel)
                result.untracked.append(rel)
        else:
            tracked.remove(rel)
            result.untracked.append(rel)

    repo.store.save()
    repo.staging.save()
    save_tracked(tracked, ctx)
    return result


# ============= Commit =============

def commit(repo: Repository, message: str, author: Optional[str] = None) -> Commit:
    """Finalize the staging area into a new commit.

    Paths committed as deletions are dropped from the registry.

    Raises:
        AuthorUnavailableError: If neither ``author`` nor config provides one
        NothingToCommitError: If nothing is staged
    """
    new_commit = repo.staging.finalize(
        message, author or repo.config.require_author(), repo.history
    )

    removed = [c.path for c in new_commit.changes if c.action == ChangeAction.DELETE]
    if removed:
        tracked = load_tracked(repo.ctx, repo.config.max_file_size)
        tracked.remove(*removed)
        save_tracked(tracked, repo.ctx)
    return new_commit


def list_commits(repo: Repository) -> List[Commit]:
    """Main-line commits, newest first."""
    return list(reversed(list(repo.history.main_line())))
