"""
Performance advisor for detection runs.

This module estimates the memory a run will need, produces warnings for
batches that are likely to be slow, recommends worker pool sizes and
suggests how a caller might split an oversized batch.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import psutil

from twinscan.core.models import FileRecord, ScanMode
from twinscan.shared.constants import FileCount, Memory, Similarity, Workers

logger = logging.getLogger(__name__)


class WarningLevel(str, Enum):
    """Severity of a performance warning."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class PerformanceWarning:
    """A caller-facing note about expected run cost."""

    kind: str
    level: WarningLevel
    message: str
    suggestion: str

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind,
            "level": self.level.value,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class MemoryEstimate:
    """Estimated memory footprint of a run in bytes.

    Attributes:
        base_memory: Per-file bookkeeping for every file in the batch.
        processing_memory: Byte buffers held by in-flight workers.
    """

    base_memory: int
    processing_memory: int

    @property
    def total(self) -> int:
        return self.base_memory + self.processing_memory


@dataclass(frozen=True)
class BatchStrategy:
    """How a batch could be split to keep runs responsive."""

    strategy: str
    batch_size: int
    batch_count: int
    message: str


@dataclass
class CapacityReport:
    """Answer to "can this batch be processed comfortably?"."""

    file_count_ok: bool
    memory_ok: bool
    available_memory: int
    warnings: list[PerformanceWarning] = field(default_factory=list)


def cpu_count() -> int:
    """Return the number of logical CPUs, with a fallback when unknown."""
    return os.cpu_count() or Workers.FALLBACK_CPU_COUNT


def default_hash_workers(cpus: int | None = None) -> int:
    """Recommended hashing pool size: every core but one, at least two."""
    cpus = cpus if cpus is not None else cpu_count()
    return max(Workers.MIN_HASH_WORKERS, cpus - 1)


def default_similarity_workers(cpus: int | None = None) -> int:
    """Recommended signature pool size: half the cores, at least one."""
    cpus = cpus if cpus is not None else cpu_count()
    return max(Workers.MIN_SIMILARITY_WORKERS, cpus // 2)


def format_bytes(size: float) -> str:
    """Format a byte count for humans.

    Example:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{value:.1f} {units[index]}".replace(".0 ", " ")


class PerformanceAdvisor:
    """Estimates run cost and recommends resource settings.

    Args:
        memory_warning_bytes: Estimated usage above which a warning is raised.
        memory_error_bytes: Estimated usage above which the warning is an error.
        max_files_warning: File count above which a warning is raised.
        max_files_error: File count above which the warning is an error.

    Example:
        >>> advisor = PerformanceAdvisor()
        >>> advisor.recommended_workers("similarity") >= 1
        True
    """

    def __init__(
        self,
        memory_warning_bytes: int = Memory.WARNING_THRESHOLD,
        memory_error_bytes: int = Memory.ERROR_THRESHOLD,
        max_files_warning: int = FileCount.MEDIUM,
        max_files_error: int = FileCount.LARGE,
    ) -> None:
        self.memory_warning_bytes = memory_warning_bytes
        self.memory_error_bytes = memory_error_bytes
        self.max_files_warning = max_files_warning
        self.max_files_error = max_files_error

    def available_memory(self) -> int:
        """Return available system memory in bytes as reported by psutil."""
        available = int(psutil.virtual_memory().available)
        return available if available > 0 else Memory.FALLBACK_AVAILABLE

    def estimate_memory(
        self,
        files: Sequence[FileRecord],
        scan_mode: ScanMode | str,
        num_perm: int = Similarity.NUM_PERM,
    ) -> MemoryEstimate:
        """Estimate memory needed to run ``scan_mode`` over ``files``.

        Args:
            files: Batch to be scanned.
            scan_mode: Requested detection mode.
            num_perm: Signature length used in similarity work.

        Returns:
            MemoryEstimate for the batch.
        """
        scan_mode = ScanMode(scan_mode)
        per_file = Memory.PER_FILE_OVERHEAD
        if scan_mode in (ScanMode.EXACT, ScanMode.MULTI_CRITERIA):
            per_file += Memory.DIGEST_OVERHEAD
        if scan_mode in (ScanMode.SIMILARITY, ScanMode.MULTI_CRITERIA):
            per_file += num_perm * Memory.SIGNATURE_VALUE_SIZE + Memory.SHINGLE_OVERHEAD

        file_count = len(files)
        average_size = sum(f.size for f in files) / file_count if file_count else 0.0
        processing = min(average_size * Memory.FILES_IN_FLIGHT, Memory.PROCESSING_CAP)

        return MemoryEstimate(
            base_memory=file_count * per_file,
            processing_memory=int(processing),
        )

    def generate_warnings(self, file_count: int, memory_usage: int) -> list[PerformanceWarning]:
        """Build warnings for a batch size and estimated memory usage."""
        warnings: list[PerformanceWarning] = []

        if file_count > self.max_files_warning:
            warnings.append(
                PerformanceWarning(
                    kind="file_count",
                    level=WarningLevel.ERROR if file_count > self.max_files_error else WarningLevel.WARNING,
                    message=f"Processing {file_count} files may be slow. Consider scanning smaller batches.",
                    suggestion="Split the batch by directory or by file size before scanning.",
                ),
            )

        if memory_usage > self.memory_warning_bytes:
            warnings.append(
                PerformanceWarning(
                    kind="memory",
                    level=WarningLevel.ERROR if memory_usage > self.memory_error_bytes else WarningLevel.WARNING,
                    message=f"Estimated memory usage: {format_bytes(memory_usage)}",
                    suggestion="Reduce the batch size or lower the signature length.",
                ),
            )

        return warnings

    def check_capacity(
        self,
        files: Sequence[FileRecord],
        scan_mode: ScanMode | str,
        num_perm: int = Similarity.NUM_PERM,
    ) -> CapacityReport:
        """Check whether a batch fits comfortably in this machine's resources."""
        estimate = self.estimate_memory(files, scan_mode, num_perm)
        available = self.available_memory()
        report = CapacityReport(
            file_count_ok=len(files) <= self.max_files_error,
            memory_ok=estimate.total <= available * Memory.USABLE_FRACTION,
            available_memory=available,
            warnings=self.generate_warnings(len(files), estimate.total),
        )

        for warning in report.warnings:
            logger.warning("%s (%s)", warning.message, warning.suggestion)

        return report

    def recommended_limits(self) -> dict[str, int]:
        """Return recommended batch limits for this machine."""
        return {
            "max_files": FileCount.RECOMMENDED_MAX,
            "max_memory": int(self.available_memory() * Memory.RECOMMENDED_FRACTION),
            "recommended_batch_size": FileCount.RECOMMENDED_BATCH_SIZE,
        }

    def recommended_workers(self, task_type: str = "hashing") -> int:
        """Return the recommended pool size for ``hashing`` or ``similarity`` work."""
        if task_type == "similarity":
            return default_similarity_workers()
        return default_hash_workers()

    def batch_strategy(self, file_count: int) -> BatchStrategy:
        """Suggest how to split a batch of ``file_count`` files.

        Example:
            >>> PerformanceAdvisor().batch_strategy(100).strategy
            'single_batch'
        """
        if file_count <= FileCount.RECOMMENDED_BATCH_SIZE:
            return BatchStrategy(
                strategy="single_batch",
                batch_size=file_count,
                batch_count=1 if file_count else 0,
                message="Processing all files in one batch",
            )

        batch_size = int(FileCount.RECOMMENDED_BATCH_SIZE * FileCount.BATCH_HEADROOM)
        batch_count = -(-file_count // batch_size)
        return BatchStrategy(
            strategy="multi_batch",
            batch_size=batch_size,
            batch_count=batch_count,
            message=f"Processing {file_count} files in {batch_count} batches for optimal performance",
        )


__all__ = [
    "BatchStrategy",
    "CapacityReport",
    "MemoryEstimate",
    "PerformanceAdvisor",
    "PerformanceWarning",
    "WarningLevel",
    "cpu_count",
    "default_hash_workers",
    "default_similarity_workers",
    "format_bytes",
]
