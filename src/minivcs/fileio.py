"""Raw file primitives: byte-limited reads and whole-file atomic writes.

Every persisted artifact is rewritten in full on save, never appended to.
Writes go to a temp file in the target directory which is fsynced and then
renamed over the target, so a reader never sees a half-written file.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from .errors import SizeLimitExceededError

logger = logging.getLogger(__name__)


def _fsync_dir(path: Path) -> None:
    """Fsync a directory to ensure directory entry updates are durable.

    This is a best-effort operation that may not work on all platforms/filesystems.
    Windows and some filesystems don't support directory fsync.
    """
    try:
        # Use O_DIRECTORY flag if available (Linux)
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY

        fd = os.open(str(path), flags)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        logger.debug("Directory fsync not supported for %s", path)


def read_bytes(path: Path, limit: int) -> bytes:
    """Read a whole file, refusing anything larger than ``limit`` bytes.

    Args:
        path: File to read
        limit: Maximum number of bytes accepted

    Returns:
        File contents

    Raises:
        SizeLimitExceededError: If the file is larger than ``limit``
        OSError: If the file cannot be opened or read
    """
    path = Path(path)
    size = path.stat().st_size
    if size > limit:
        raise SizeLimitExceededError(path, size, limit)

    with path.open("rb") as f:
        # Read one extra byte so a file growing under us is still caught
        data = f.read(limit + 1)
    if len(data) > limit:
        raise SizeLimitExceededError(path, len(data), limit)
    return data


def read_lines(path: Path, limit: int) -> List[str]:
    """Read a UTF-8 text file as a list of lines (line endings stripped).

    Empty lines are kept so callers can report accurate line numbers.
    """
    return read_bytes(path, limit).decode("utf-8").splitlines()


def write_bytes_atomic(path: Path, data: bytes, mode: int = 0o644) -> None:
    """Atomically replace ``path`` with ``data``.

    Args:
        path: Target file path (parent directories are created)
        data: Bytes to write
        mode: Permission bits applied before the file becomes visible
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
    ) as f:
        tmp = Path(f.name)
        try:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        except OSError:
            f.close()
            tmp.unlink(missing_ok=True)
            raise

    try:
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
    _fsync_dir(path.parent)


def write_text_atomic(path: Path, text: str) -> None:
    """Atomically replace ``path`` with UTF-8 ``text``."""
    write_bytes_atomic(path, text.encode("utf-8"))


def write_lines(path: Path, lines: Iterable[str]) -> None:
    """Truncating write of one record per line (trailing newline on each)."""
    write_text_atomic(path, "".join(f"{line}\n" for line in lines))
