"""Hashing utilities for content addressing and commit identity.

Blobs are keyed by the SHA-1 hex digest of their bytes. Commit identities are
derived from the (encoded) author and the commit timestamp.
"""

import base64
import hashlib
import re

_HEX40 = re.compile(r"^[0-9a-f]{40}$")


def compute_digest(data: bytes) -> str:
    """Compute SHA-1 hex digest of raw bytes.

    Simple byte-for-byte hashing - any change invalidates the digest.

    Args:
        data: Content to hash

    Returns:
        40-character lowercase hex digest
    """
    return hashlib.sha1(data).hexdigest()


def is_valid_digest(digest: str) -> bool:
    """Check that a string is a 40-character lowercase hex digest."""
    return bool(_HEX40.fullmatch(digest))


def encode_text(text: str) -> str:
    """Base64-encode a UTF-8 string (author and message fields of a commit)."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_text(encoded: str) -> str:
    """Inverse of :func:`encode_text`."""
    return base64.b64decode(encoded.encode("ascii")).decode("utf-8")


def compute_commit_id(encoded_author: str, timestamp: int) -> str:
    """Compute a commit identity hash from author and timestamp.

    Two commits by the same author within the same second collide; this is
    accepted at the expected commit rate.

    Args:
        encoded_author: Base64-encoded author string
        timestamp: Unix timestamp in seconds

    Returns:
        40-character hex digest
    """
    return compute_digest(f"{encoded_author};{timestamp}".encode("utf-8"))


__all__ = [
    "compute_digest",
    "compute_commit_id",
    "decode_text",
    "encode_text",
    "is_valid_digest",
]
