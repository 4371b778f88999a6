"""
Twinscan - Duplicate and Near-Duplicate File Detection

Groups files that are byte-identical, that share a filename pattern, or
whose contents are similar, and merges those groupings by priority with a
confidence score per group.
"""

__version__ = "0.1.0"
__author__ = "Twinscan Team"

from .config import Settings, load_settings
from .core import (
    CancellationToken,
    DetectionRequest,
    DetectionResult,
    FileRecord,
    FilenameMode,
    OutcomeStatus,
    ProgressEvent,
    ScanMode,
    ScanOutcome,
)
from .core.engine import DetectionEngine, detect

__all__ = [
    "CancellationToken",
    "DetectionEngine",
    "DetectionRequest",
    "DetectionResult",
    "FileRecord",
    "FilenameMode",
    "OutcomeStatus",
    "ProgressEvent",
    "ScanMode",
    "ScanOutcome",
    "Settings",
    "detect",
    "load_settings",
]
