"""Unit tests for ContentHasher."""

from __future__ import annotations

import hashlib

from twinscan.core.hasher import ContentHasher


class TestContentHasher:
    """Test cases for content digests."""

    def test_digest_matches_sha256(self) -> None:
        """The digest is the hex SHA-256 of the content."""
        hasher = ContentHasher()
        assert hasher.digest(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_digest_is_stable(self, base_bytes: bytes) -> None:
        """Repeated calls on identical bytes give the same digest."""
        hasher = ContentHasher()
        assert hasher.digest(base_bytes) == hasher.digest(bytes(base_bytes))
        assert hasher.digest(base_bytes) == ContentHasher().digest(base_bytes)

    def test_single_byte_change_changes_digest(self, base_bytes: bytes) -> None:
        """Flipping one byte yields a different digest."""
        changed = bytearray(base_bytes)
        changed[1234] ^= 0xFF

        hasher = ContentHasher()
        assert hasher.digest(base_bytes) != hasher.digest(bytes(changed))

    def test_empty_input(self) -> None:
        """Empty input has the well-known empty SHA-256 digest."""
        assert ContentHasher().digest(b"") == hashlib.sha256(b"").hexdigest()

    def test_digest_chunks_matches_digest(self, base_bytes: bytes) -> None:
        """Streaming the same bytes in chunks gives the same digest."""
        hasher = ContentHasher()
        chunks = [base_bytes[i : i + 1000] for i in range(0, len(base_bytes), 1000)]
        assert hasher.digest_chunks(chunks) == hasher.digest(base_bytes)
