"""Detection engine constants."""

from __future__ import annotations

from typing import Final


class Similarity:
    """MinHash signature and clustering defaults."""

    NUM_PERM = 128  # N: hash functions per signature
    SHINGLE_SIZE = 4  # k: bytes per shingle
    SEED = 1  # fixed permutation seed, never per-run
    DEFAULT_THRESHOLD = 0.8
    # Sentinel for empty files; above datasketch's 32-bit hash range
    EMPTY_SENTINEL = (1 << 32) + 1
    ALGORITHM = "MinHash+Shingling"


class FilenameScores:
    """Fixed similarity scores for the tiered filename comparison."""

    EXACT = 1.0
    SAME_BASE_OTHER_EXTENSION = 0.95
    NORMALIZED_SAME_EXTENSION = 0.90
    NORMALIZED_OTHER_EXTENSION = 0.85
    FUZZY_EXTENSION_BOOST = 0.1
    FUZZY_BOOST_FLOOR = 0.6
    DEFAULT_THRESHOLD = 0.8


class Confidence:
    """Multi-criteria confidence scoring constants."""

    DEFAULT_WEIGHT = 0.33
    SIZE_STEP = 0.1  # per corroborating file beyond the first pair
    SIZE_MULTIPLIER_CAP = 2.0
    EXACT_BOOST = 1.2
    DEFAULT_AVG_SIMILARITY = 0.8
    MAX = 1.0


class Progress:
    """Progress reporting cadence."""

    ARTIFACT_INTERVAL = 25  # K: report every K completed files
    COMPARISON_INTERVAL = 100  # pairwise comparisons between filename reports
    PAIRWISE_ROW_BATCH = 32  # similarity rows between cancellation checks


DEFAULT_WEIGHTS: Final[dict[str, float]] = {
    "exact": 0.5,
    "filename": 0.4,
    "similarity": 0.1,
}

DEFAULT_PRIORITY_ORDER: Final[tuple[str, ...]] = ("exact", "filename", "similarity")

DEFAULT_ENABLED_CRITERIA: Final[dict[str, bool]] = {
    "exact": True,
    "filename": True,
    "similarity": False,
}


__all__ = [
    "DEFAULT_ENABLED_CRITERIA",
    "DEFAULT_PRIORITY_ORDER",
    "DEFAULT_WEIGHTS",
    "Confidence",
    "FilenameScores",
    "Progress",
    "Similarity",
]
