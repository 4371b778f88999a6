"""Twinscan Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from twinscan.config.models.app_settings import LoggingSettings
from twinscan.config.models.detection_settings import (
    FilenameSettings,
    MultiCriteriaSettings,
    SimilaritySettings,
)
from twinscan.config.models.performance_settings import PerformanceSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Values come from constructor arguments, then ``TWINSCAN_``-prefixed
    environment variables (nested with ``__``, e.g.
    ``TWINSCAN_SIMILARITY__THRESHOLD=0.9``), then defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TWINSCAN_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    similarity: SimilaritySettings = Field(default_factory=SimilaritySettings)
    filename: FilenameSettings = Field(default_factory=FilenameSettings)
    multi_criteria: MultiCriteriaSettings = Field(default_factory=MultiCriteriaSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from TOML file with environment variable overrides."""

        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file."""

        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json", exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)

        logger.debug("Saved settings to %s", file_path)


__all__ = ["Settings"]
