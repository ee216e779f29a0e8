"""Local content-addressed blob storage.

One file per distinct content hash, named by the SHA-1 hex digest:

    <store>/objects/<sha1 hex>

Blobs are written atomically (temp file + rename) and made read-only
(0o444) before they become visible, so a blob path either holds the full
content or does not exist. Full copies only; no delta or compression.
"""

import logging
from pathlib import Path

from .errors import NotFoundError, StorageError
from .fileio import read_bytes, write_bytes_atomic
from .hashing import is_valid_digest

logger = logging.getLogger(__name__)


def _validate_digest(digest: str) -> str:
    """Validate a blob digest before using it in a path.

    Raises:
        ValueError: If digest is not 40 lowercase hex characters

    Security:
        Prevents path traversal through crafted index entries.
    """
    if not is_valid_digest(digest):
        raise ValueError(f"Invalid sha1 hex (must be 40 hex chars): {digest!r}")
    return digest


class BlobStore:
    """Content-addressed storage for snapshot bytes.

    Attributes:
        root: Directory holding one file per blob
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def initialize(self) -> None:
        """Create the blob directory. Idempotent."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create blob directory {self.root}: {e}") from e

    def path_for(self, digest: str) -> Path:
        """Get storage path for a digest."""
        return self.root / _validate_digest(digest)

    def has(self, digest: str) -> bool:
        """Check if a blob exists."""
        try:
            return self.path_for(digest).exists()
        except ValueError:
            return False

    def put(self, digest: str, data: bytes) -> Path:
        """Store bytes under their digest.

        A no-op when the blob already exists. Verifying that ``digest`` matches
        ``data`` is the caller's responsibility.

        Raises:
            StorageError: If the blob cannot be written
        """
        dst = self.path_for(digest)
        if dst.exists():
            logger.debug("Blob already present: %s", digest[:12])
            return dst

        try:
            write_bytes_atomic(dst, data, mode=0o444)
        except OSError as e:
            raise StorageError(f"Cannot write blob {digest[:12]}: {e}") from e

        logger.debug("Stored blob %s (%d bytes)", digest[:12], len(data))
        return dst

    def read(self, digest: str, limit: int) -> bytes:
        """Read a blob's bytes.

        Raises:
            NotFoundError: If the blob does not exist
            SizeLimitExceededError: If the blob is larger than ``limit``
            StorageError: On any other I/O failure
        """
        src = self.path_for(digest)
        try:
            return read_bytes(src, limit)
        except FileNotFoundError:
            raise NotFoundError(f"Blob not found: {digest}")
        except OSError as e:
            raise StorageError(f"Cannot read blob {digest[:12]}: {e}") from e

    def delete(self, digest: str) -> None:
        """Delete a blob.

        A blob that is already gone is not an error: the goal state is reached.

        Raises:
            StorageError: If the blob exists but cannot be removed
        """
        path = self.path_for(digest)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Blob %s already absent", digest[:12])
            return
        except OSError as e:
            raise StorageError(f"Cannot delete blob {digest[:12]}: {e}") from e
        logger.debug("Deleted blob %s", digest[:12])
