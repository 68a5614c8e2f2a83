"""Fast hashing for non-cryptographic use cases.

xxhash for cache keys and render fingerprints (ETags).
"""

from typing import Protocol
from enum import Enum

import xxhash


class Algorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH64 = "xxhash64"  # Fast, non-cryptographic (cache keys)


class Hasher(Protocol):
    """Protocol for hash implementations."""

    def digest(self, data: bytes) -> str:
        """Compute hex digest of data."""
        ...


class XXHasher:
    """Ultra-fast non-cryptographic hasher."""

    def digest(self, data: bytes) -> str:
        return xxhash.xxh64(data).hexdigest()


def create_hasher(algorithm: Algorithm = Algorithm.XXHASH64) -> Hasher:
    """
    Create hasher instance.

    Raises:
        ValueError: If the algorithm is unknown
    """
    if algorithm == Algorithm.XXHASH64:
        return XXHasher()
    raise ValueError(f"Unknown algorithm: {algorithm}")


def hash_string(
    text: str,
    algorithm: Algorithm = Algorithm.XXHASH64,
    truncate: int | None = None
) -> str:
    """
    Hash string to hex digest.

    Args:
        text: String to hash
        algorithm: Hash algorithm (default: xxhash64 for speed)
        truncate: Optional length to truncate digest (e.g., 8 for short keys)

    Examples:
        >>> len(hash_string("test", truncate=8))
        8
    """
    digest = create_hasher(algorithm).digest(text.encode("utf-8"))

    if truncate:
        return digest[:truncate]
    return digest


__all__ = [
    "Algorithm",
    "Hasher",
    "create_hasher",
    "hash_string",
]
