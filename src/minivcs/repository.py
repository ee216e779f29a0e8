"""Per-command repository handle.

A :class:`Repository` bundles everything one command needs: project paths,
effective configuration, snapshot store, staging area and history. It is
built at command start, passed explicitly to every operation, and discarded
when the command ends; nothing is cached at module level.
"""

from dataclasses import dataclass
from typing import Optional

from .config import VcsConfig, load_config
from .context import ProjectContext
from .history import CommitTree
from .snapshots import SnapshotStore
from .staging import WorkingCommit


@dataclass
class Repository:
    ctx: ProjectContext
    config: VcsConfig
    store: SnapshotStore
    staging: WorkingCommit
    history: CommitTree

    @classmethod
    def open(
        cls,
        ctx: Optional[ProjectContext] = None,
        config: Optional[VcsConfig] = None,
    ) -> "Repository":
        """Load store, staging area and history for a project.

        Raises:
            NotInitializedError: If ``ctx`` is omitted and cwd is not in a project
            FormatError: If a persisted file is malformed
            IntegrityError: If staging and store disagree
        """
        if ctx is None:
            ctx = ProjectContext()
        if config is None:
            config = load_config(ctx)

        limit = config.max_file_size
        store = SnapshotStore(ctx.root, ctx.index_path, ctx.objects_dir, max_file_size=limit)
        store.initialize()
        store.load()

        staging = WorkingCommit(store, ctx.staging_path, max_file_size=limit)
        staging.load()

        history = CommitTree(ctx.history_path, max_file_size=limit)
        history.load()

        return cls(ctx=ctx, config=config, store=store, staging=staging, history=history)
