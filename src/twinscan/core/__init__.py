"""
Core components for Twinscan.

This module contains the file model, request and result types, and the
building blocks of a detection run. The engine itself lives in
``twinscan.core.engine``.
"""

from .cancellation import CancellationToken
from .models import (
    ArtifactKind,
    Criterion,
    FileFailure,
    FilenameMode,
    FileRecord,
    InMemoryContent,
    ScanMode,
    SimilaritySignature,
)
from .request import DetectionRequest
from .results import (
    DetectionResult,
    OutcomeStatus,
    Phase,
    ProgressEvent,
    ScanOutcome,
)
from .statistics import ScanSummary

__all__ = [
    "ArtifactKind",
    "CancellationToken",
    "Criterion",
    "DetectionRequest",
    "DetectionResult",
    "FileFailure",
    "FileRecord",
    "FilenameMode",
    "InMemoryContent",
    "OutcomeStatus",
    "Phase",
    "ProgressEvent",
    "ScanMode",
    "ScanOutcome",
    "ScanSummary",
    "SimilaritySignature",
]
