"""Shared constants for Twinscan.

All tunable defaults and regex patterns live here so that the engine,
the configuration models and the tests read them from one place.
"""

from __future__ import annotations

from .detection import (
    DEFAULT_ENABLED_CRITERIA,
    DEFAULT_PRIORITY_ORDER,
    DEFAULT_WEIGHTS,
    Confidence,
    FilenameScores,
    Progress,
    Similarity,
)
from .performance import FileCount, Memory, Workers

__all__ = [
    "DEFAULT_ENABLED_CRITERIA",
    "DEFAULT_PRIORITY_ORDER",
    "DEFAULT_WEIGHTS",
    "Confidence",
    "FileCount",
    "FilenameScores",
    "Memory",
    "Progress",
    "Similarity",
    "Workers",
]
