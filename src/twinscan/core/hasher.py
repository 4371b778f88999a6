"""Content hashing for exact-duplicate detection.

Content equality is defined as SHA-256 digest equality; two different byte
sequences are treated as practically never colliding.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from twinscan.core.models import ContentDigest


class ContentHasher:
    """Produces a strong, deterministic digest of a file's bytes.

    Example:
        >>> hasher = ContentHasher()
        >>> hasher.digest(b"abc")[:16]
        'ba7816bf8f01cfea'
    """

    algorithm = "sha256"

    def digest(self, data: bytes) -> ContentDigest:
        """Return the hex digest of ``data``."""
        return hashlib.new(self.algorithm, data).hexdigest()

    def digest_chunks(self, chunks: Iterable[bytes]) -> ContentDigest:
        """Return the hex digest of a streamed byte sequence.

        Produces the same digest as ``digest(b"".join(chunks))`` without
        holding the whole content at once.
        """
        hasher = hashlib.new(self.algorithm)
        for chunk in chunks:
            hasher.update(chunk)
        return hasher.hexdigest()


__all__ = ["ContentHasher"]
