"""Result and progress types returned by the detection engine."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from twinscan.core.file_grouper.models import Group
from twinscan.core.models import FileFailure, ScanMode
from twinscan.core.performance import PerformanceWarning
from twinscan.core.statistics import ScanSummary
from twinscan.shared.errors import TwinscanError


class Phase(str, Enum):
    """Labels carried by progress events."""

    HASHING = "hashing"
    SIGNATURES = "signatures"
    EXACT_GROUPING = "exact_grouping"
    FILENAME_GROUPING = "filename_grouping"
    SIMILARITY_GROUPING = "similarity_grouping"
    MERGING = "merging"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification.

    Attributes:
        fraction: Overall completion in [0, 1]; never decreases within a run.
        phase: Phase the run is in.
        current_file: Name of the file last processed, when known.
        completed: Work units done in this phase.
        total: Work units planned for this phase.
        message: Human-readable status line.
    """

    fraction: float
    phase: Phase
    current_file: str | None = None
    completed: int = 0
    total: int = 0
    message: str = ""


ProgressHandler = Callable[[ProgressEvent], None]


class OutcomeStatus(str, Enum):
    """How a detection run ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class DetectionResult:
    """Groups and bookkeeping of one completed run.

    Attributes:
        groups: Groups found; for multi-criteria runs sorted by confidence.
        total_files: Size of the input batch.
        scan_mode: Mode the run executed.
        thresholds_used: Thresholds that shaped the groups.
        failures: Files whose content could not be read, in input order.
        summary: Counts and reclaimable space.
        warnings: Resource warnings raised before the run.
        duration_ms: Wall-clock duration of the run.
        phase_durations_ms: Wall-clock duration per phase.
    """

    groups: list[Group]
    total_files: int
    scan_mode: ScanMode
    thresholds_used: dict[str, float | str] = field(default_factory=dict)
    failures: list[FileFailure] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)
    warnings: list[PerformanceWarning] = field(default_factory=list)
    duration_ms: float = 0.0
    phase_durations_ms: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_mode": self.scan_mode.value,
            "total_files": self.total_files,
            "thresholds_used": dict(self.thresholds_used),
            "groups": [group.to_dict() for group in self.groups],
            "failures": [failure.to_dict() for failure in self.failures],
            "summary": self.summary.to_dict(),
            "warnings": [warning.to_dict() for warning in self.warnings],
            "duration_ms": self.duration_ms,
            "phase_durations_ms": dict(self.phase_durations_ms),
        }


@dataclass
class ScanOutcome:
    """Terminal state of a run: a result, a cancellation or a failure.

    Example:
        >>> outcome = engine.detect(files, DetectionRequest(mode="exact"))
        >>> outcome.status
        <OutcomeStatus.COMPLETED: 'completed'>
    """

    status: OutcomeStatus
    result: Optional[DetectionResult] = None
    error: Optional[TwinscanError] = None

    @property
    def completed(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "result": self.result.to_dict() if self.result is not None else None,
            "error": self.error.to_dict() if self.error is not None else None,
        }


__all__ = [
    "DetectionResult",
    "OutcomeStatus",
    "Phase",
    "ProgressEvent",
    "ProgressHandler",
    "ScanOutcome",
]
