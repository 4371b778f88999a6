"""Configuration domain models."""

from __future__ import annotations

from .app_settings import LoggingSettings
from .detection_settings import FilenameSettings, MultiCriteriaSettings, SimilaritySettings
from .performance_settings import PerformanceSettings
from .settings import Settings

__all__ = [
    "FilenameSettings",
    "LoggingSettings",
    "MultiCriteriaSettings",
    "PerformanceSettings",
    "Settings",
    "SimilaritySettings",
]
