"""Custom exceptions for minivcs.

This module defines typed exceptions for better error handling and clearer
error messages throughout the application. Every layer wraps the originating
error with operation and path context and re-raises; nothing is retried.
"""

from typing import Optional


class VcsError(RuntimeError):
    """Base class for all minivcs errors."""
    pass


# Persisted Format Errors
class FormatError(VcsError):
    """Malformed persisted text (index, staging or history file).

    Fatal: the file is never partially loaded.
    """

    def __init__(self, path, reason: str, line_no: Optional[int] = None):
        self.path = str(path)
        self.reason = reason
        self.line_no = line_no
        location = f"{self.path}:{line_no}" if line_no is not None else self.path
        super().__init__(f"Malformed {location}: {reason}")


# Lookup Errors
class NotFoundError(VcsError):
    """Required path or hash is absent."""
    pass


class AlreadyExistsError(VcsError):
    """Duplicate registration (e.g. project already initialized)."""
    pass


# Integrity Errors
class IntegrityError(VcsError):
    """Staging references a snapshot unknown to the snapshot store."""

    def __init__(self, path: str, digest: str):
        self.path = path
        self.digest = digest
        super().__init__(
            f"Staged change for {path} references snapshot {digest[:12]} "
            f"which is not in the snapshot store. "
            f"The staging file and snapshot index are out of sync."
        )


# Storage Errors
class StorageError(VcsError):
    """Underlying I/O failure (read, copy, write or delete)."""
    pass


class SizeLimitExceededError(StorageError):
    """A raw read would exceed the configured maximum size."""

    def __init__(self, path, size: int, limit: int):
        self.path = str(path)
        self.size = size
        self.limit = limit
        super().__init__(
            f"Cannot read {self.path}: {size} bytes exceeds the limit of {limit} bytes"
        )


# Configuration Errors
class ConfigError(VcsError):
    """Base class for configuration errors."""
    pass


class NotInitializedError(ConfigError):
    """No .minivcs directory found."""
    pass


class AuthorUnavailableError(ConfigError):
    """Commit author identity is not configured."""

    def __init__(self):
        super().__init__(
            "Author identity is unknown. Set 'author' in .minivcs/config.yaml "
            "or export MINIVCS_AUTHOR."
        )


# Commit Errors
class NothingToCommitError(VcsError):
    """Finalize called on an empty working commit."""

    def __init__(self):
        super().__init__("Nothing to commit (use 'minivcs add' to stage changes)")
