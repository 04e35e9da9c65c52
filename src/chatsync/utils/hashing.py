"""Content hashing utilities for artifact identity."""

import hashlib


def calculate_content_hash(content: str | bytes) -> str:
    """
    Calculate SHA-256 hash of content.

    Args:
        content: String or bytes content to hash

    Returns:
        Hexadecimal string representation of the SHA-256 hash (64 characters)
    """
    if isinstance(content, str):
        content = content.encode("utf-8", errors="replace")

    return hashlib.sha256(content).hexdigest()


def short_hash(content: str | bytes, length: int = 12) -> str:
    """Return the first ``length`` hex characters of the content hash."""
    return calculate_content_hash(content)[:length]
