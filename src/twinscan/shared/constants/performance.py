"""Performance and resource constants."""

from __future__ import annotations

BASE_FILE_SIZE = 1024


class Memory:
    """Memory estimation thresholds."""

    WARNING_THRESHOLD = 100 * BASE_FILE_SIZE**2  # 100MB
    ERROR_THRESHOLD = 500 * BASE_FILE_SIZE**2  # 500MB
    PROCESSING_CAP = 50 * BASE_FILE_SIZE**2  # in-flight buffer cap
    FALLBACK_AVAILABLE = BASE_FILE_SIZE**3  # 1GB when psutil reports nothing
    USABLE_FRACTION = 0.8
    RECOMMENDED_FRACTION = 0.6

    # Per-file bookkeeping estimates (bytes)
    PER_FILE_OVERHEAD = 1024
    DIGEST_OVERHEAD = 64 + 200
    SIGNATURE_VALUE_SIZE = 4
    SHINGLE_OVERHEAD = 500
    FILES_IN_FLIGHT = 10


class FileCount:
    """File count thresholds for warnings."""

    MEDIUM = 5000
    LARGE = 10000
    RECOMMENDED_MAX = 8000
    RECOMMENDED_BATCH_SIZE = 2000
    BATCH_HEADROOM = 0.8


class Workers:
    """Worker pool sizing."""

    MIN_HASH_WORKERS = 2
    MIN_SIMILARITY_WORKERS = 1
    FALLBACK_CPU_COUNT = 4


__all__ = ["BASE_FILE_SIZE", "FileCount", "Memory", "Workers"]
