"""Unit tests for shingling and MinHash signatures."""

from __future__ import annotations

import pytest

from datasketch import MinHash

from twinscan.core.signature import SignatureBuilder, build_signature
from twinscan.shared.constants import Similarity


class TestShingles:
    """Test cases for shingle extraction."""

    def test_overlapping_windows(self) -> None:
        """Every k-byte window is a shingle."""
        builder = SignatureBuilder(shingle_size=3)
        assert builder.shingles(b"abcde") == {b"abc", b"bcd", b"cde"}

    def test_repeated_windows_collapse(self) -> None:
        """Shingles form a set."""
        builder = SignatureBuilder(shingle_size=2)
        assert builder.shingles(b"aaaa") == {b"aa"}

    def test_short_input_is_single_shingle(self) -> None:
        """Content shorter than k is one shingle."""
        builder = SignatureBuilder(shingle_size=4)
        assert builder.shingles(b"ab") == {b"ab"}


class TestSignatureBuilder:
    """Test cases for signature building."""

    def test_signature_length(self) -> None:
        """A signature has one value per hash function."""
        signature = SignatureBuilder(num_perm=64).signature(b"hello world")

        assert len(signature.values) == 64
        assert signature.num_perm == 64
        assert signature.shingle_size == Similarity.SHINGLE_SIZE
        assert not signature.empty

    def test_signature_is_deterministic(self, base_bytes: bytes) -> None:
        """Identical bytes and parameters give identical signatures."""
        first = SignatureBuilder().signature(base_bytes)
        second = SignatureBuilder().signature(bytes(base_bytes))

        assert first == second
        assert build_signature(base_bytes) == first

    def test_matches_fresh_minhash(self, base_bytes: bytes) -> None:
        """Values equal a fresh seeded MinHash over the same shingles."""
        builder = SignatureBuilder(num_perm=64, seed=3)
        expected = MinHash(num_perm=64, seed=3)
        expected.update_batch(builder.shingles(base_bytes))

        signature = builder.signature(base_bytes)

        assert signature.values == tuple(int(v) for v in expected.hashvalues)

    def test_builder_reused_across_files(self, base_bytes: bytes, other_bytes: bytes) -> None:
        """Building one signature does not leak into the next."""
        builder = SignatureBuilder()
        first = builder.signature(base_bytes)
        builder.signature(other_bytes)

        assert builder.signature(base_bytes) == first

    def test_identical_content_similarity_is_one(self, base_bytes: bytes) -> None:
        """Byte-identical files have similarity 1.0."""
        builder = SignatureBuilder()
        assert builder.signature(base_bytes).similarity(builder.signature(base_bytes)) == 1.0

    def test_unrelated_content_similarity_is_low(self, base_bytes: bytes, other_bytes: bytes) -> None:
        """Unrelated random content shares almost no signature positions."""
        builder = SignatureBuilder()
        assert builder.signature(base_bytes).similarity(builder.signature(other_bytes)) < 0.1

    def test_estimate_tracks_jaccard(self, base_bytes: bytes, other_bytes: bytes) -> None:
        """The estimate approximates the true shingle-set Jaccard similarity."""
        builder = SignatureBuilder(num_perm=256)
        mixed = base_bytes[:2000] + other_bytes[:2000]

        shingles_a = builder.shingles(base_bytes)
        shingles_b = builder.shingles(mixed)
        jaccard = len(shingles_a & shingles_b) / len(shingles_a | shingles_b)

        estimate = builder.signature(base_bytes).similarity(builder.signature(mixed))
        assert estimate == pytest.approx(jaccard, abs=0.12)

    def test_empty_file_signature(self) -> None:
        """Empty content yields an empty sentinel signature."""
        signature = SignatureBuilder(num_perm=16).signature(b"")

        assert signature.empty
        assert signature.shingle_count == 0
        assert set(signature.values) == {Similarity.EMPTY_SENTINEL}

    def test_empty_signatures_never_match(self) -> None:
        """Two empty files are not similar to each other."""
        builder = SignatureBuilder()
        assert builder.signature(b"").similarity(builder.signature(b"")) == 0.0

    def test_incompatible_signatures_score_zero(self, base_bytes: bytes) -> None:
        """Signatures with different parameters are never compared."""
        a = SignatureBuilder(shingle_size=4).signature(base_bytes)
        b = SignatureBuilder(shingle_size=5).signature(base_bytes)

        assert not a.is_compatible(b)
        assert a.similarity(b) == 0.0

    @pytest.mark.parametrize(("num_perm", "shingle_size"), [(0, 4), (128, 0)])
    def test_invalid_parameters(self, num_perm: int, shingle_size: int) -> None:
        """Non-positive parameters are rejected."""
        with pytest.raises(ValueError):
            SignatureBuilder(num_perm=num_perm, shingle_size=shingle_size)
