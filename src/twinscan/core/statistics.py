"""
Run statistics for detection results.

This module computes the summary attached to every detection result
(group and file counts, reclaimable space) and times the phases of a run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

from twinscan.core.file_grouper.models import Group
from twinscan.core.performance import format_bytes

logger = logging.getLogger(__name__)


@dataclass
class ScanSummary:
    """Container for result summary figures.

    Attributes:
        group_count: Number of groups found.
        duplicate_file_count: Files that belong to some group.
        wasted_space: Bytes reclaimable by keeping only the largest file
            of every group.
        failed_file_count: Files whose content could not be read.
    """

    group_count: int = 0
    duplicate_file_count: int = 0
    wasted_space: int = 0
    failed_file_count: int = 0

    @classmethod
    def from_groups(cls, groups: Sequence[Group], failed_file_count: int = 0) -> ScanSummary:
        """Summarize a list of groups.

        Example:
            >>> ScanSummary.from_groups([]).group_count
            0
        """
        return cls(
            group_count=len(groups),
            duplicate_file_count=sum(g.file_count for g in groups),
            wasted_space=sum(g.wasted_space for g in groups),
            failed_file_count=failed_file_count,
        )

    @property
    def wasted_space_display(self) -> str:
        return format_bytes(self.wasted_space)

    def to_dict(self) -> dict[str, object]:
        return {
            "group_count": self.group_count,
            "duplicate_file_count": self.duplicate_file_count,
            "wasted_space": self.wasted_space,
            "wasted_space_display": self.wasted_space_display,
            "failed_file_count": self.failed_file_count,
        }


@dataclass
class PhaseTimings:
    """Wall-clock durations of the phases of one run, in milliseconds."""

    durations_ms: dict[str, float] = field(default_factory=dict)
    _started: float = field(default_factory=time.perf_counter, repr=False)

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """Time a phase; repeated phases accumulate."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            self.durations_ms[name] = self.durations_ms.get(name, 0.0) + elapsed
            logger.debug("Phase '%s' took %.1f ms", name, elapsed)

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000


__all__ = ["PhaseTimings", "ScanSummary"]
