"""Shingling and MinHash signature building.

This module turns a file's byte stream into a fixed-length MinHash
signature. Two signatures built with the same (N, k, seed) estimate the
Jaccard similarity of the files' shingle sets as matching positions / N.
"""

from __future__ import annotations

import logging

from datasketch import MinHash

from twinscan.core.models import SimilaritySignature
from twinscan.shared.constants import Similarity

logger = logging.getLogger(__name__)


class SignatureBuilder:
    """Builds deterministic MinHash signatures from raw bytes.

    One seeded template MinHash is built per builder and copied for every
    file, so the permutation set is shared and identical bytes always
    produce identical signatures across calls and runs.

    Attributes:
        num_perm: Number of hash functions (N).
        shingle_size: Bytes per shingle (k).
        seed: Seed of the permutation set.

    Example:
        >>> builder = SignatureBuilder(num_perm=64, shingle_size=4)
        >>> sig = builder.signature(b"hello world")
        >>> len(sig.values)
        64
    """

    def __init__(
        self,
        num_perm: int = Similarity.NUM_PERM,
        shingle_size: int = Similarity.SHINGLE_SIZE,
        seed: int = Similarity.SEED,
    ) -> None:
        """Initialize the signature builder.

        Args:
            num_perm: Number of hash functions, must be positive.
            shingle_size: Bytes per shingle, must be positive.
            seed: Permutation seed.

        Raises:
            ValueError: If num_perm or shingle_size is not positive.
        """
        if num_perm < 1:
            msg = f"num_perm must be positive, got {num_perm}"
            raise ValueError(msg)
        if shingle_size < 1:
            msg = f"shingle_size must be positive, got {shingle_size}"
            raise ValueError(msg)

        self.num_perm = num_perm
        self.shingle_size = shingle_size
        self.seed = seed
        self._template = MinHash(num_perm=num_perm, seed=seed)

        logger.debug(
            "SignatureBuilder initialized: num_perm=%d, shingle_size=%d, seed=%d",
            num_perm,
            shingle_size,
            seed,
        )

    def shingles(self, data: bytes) -> set[bytes]:
        """Return the set of overlapping k-byte windows of ``data``.

        Content shorter than k is treated as a single shingle.

        Example:
            >>> SignatureBuilder(shingle_size=3).shingles(b"abcd") == {b"abc", b"bcd"}
            True
        """
        k = self.shingle_size
        if len(data) < k:
            return {data}
        view = memoryview(data)
        return {bytes(view[i : i + k]) for i in range(len(data) - k + 1)}

    def signature(self, data: bytes) -> SimilaritySignature:
        """Build the MinHash signature of ``data``.

        Args:
            data: Complete byte content of one file.

        Returns:
            SimilaritySignature with N values. Empty input yields an empty
            signature of sentinel values that never matches anything.
        """
        if not data:
            return SimilaritySignature(
                values=(Similarity.EMPTY_SENTINEL,) * self.num_perm,
                num_perm=self.num_perm,
                shingle_size=self.shingle_size,
                shingle_count=0,
                empty=True,
            )

        shingle_set = self.shingles(data)
        minhash = self._template.copy()
        minhash.update_batch(shingle_set)

        return SimilaritySignature(
            values=tuple(int(v) for v in minhash.hashvalues),
            num_perm=self.num_perm,
            shingle_size=self.shingle_size,
            shingle_count=len(shingle_set),
        )


def build_signature(
    data: bytes,
    shingle_size: int = Similarity.SHINGLE_SIZE,
    num_perm: int = Similarity.NUM_PERM,
) -> SimilaritySignature:
    """Convenience wrapper building a one-off signature with the default seed."""
    return SignatureBuilder(num_perm=num_perm, shingle_size=shingle_size).signature(data)


__all__ = ["SignatureBuilder", "build_signature"]
