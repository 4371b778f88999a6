"""Twinscan Configuration Module

This module provides unified access to configuration models and settings
loading for Twinscan:
- Settings: Main configuration facade
- Loader functions: load_settings, save_settings
- Domain models: Similarity, Filename, MultiCriteria, Performance, Logging settings
"""

from __future__ import annotations

from .loader import load_settings, save_settings
from .models import (
    FilenameSettings,
    LoggingSettings,
    MultiCriteriaSettings,
    PerformanceSettings,
    SimilaritySettings,
)
from .models.settings import Settings

__all__ = [
    "FilenameSettings",
    "LoggingSettings",
    "MultiCriteriaSettings",
    "PerformanceSettings",
    "Settings",
    "SimilaritySettings",
    "load_settings",
    "save_settings",
]
