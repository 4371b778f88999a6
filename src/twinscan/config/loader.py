"""Settings loader.

Every call returns a fresh Settings instance; there is no process-wide
cache, so separate engines can run with separate configurations.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import ValidationError

from twinscan.config.models.settings import Settings
from twinscan.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML file, or from defaults and the environment.

    Args:
        config_path: Optional TOML file. When None or missing, defaults
            overridden by ``TWINSCAN_*`` environment variables are used.

    Returns:
        A new Settings instance.

    Raises:
        ApplicationError: CONFIG_MISSING if the file disappears before it is
            read, CONFIG_INVALID if it fails validation, CONFIGURATION_ERROR
            if it cannot be parsed or read.
    """
    try:
        if config_path is not None and Path(config_path).exists():
            settings = Settings.from_toml_file(config_path)
            logger.info("Loaded configuration from %s", config_path)
        else:
            if config_path is not None:
                logger.warning("Configuration file not found, using defaults: %s", config_path)
            settings = Settings()
    except (ValidationError, toml.TomlDecodeError, OSError) as e:
        if isinstance(e, ValidationError):
            code = ErrorCode.CONFIG_INVALID
        elif isinstance(e, FileNotFoundError):
            code = ErrorCode.CONFIG_MISSING
        else:
            code = ErrorCode.CONFIGURATION_ERROR
        raise ApplicationError(
            code=code,
            message=f"Failed to load configuration: {e}",
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path) if config_path else ""},
            ),
            original_error=e,
        ) from e

    return settings


def save_settings(settings: Settings, config_path: str | Path) -> None:
    """Validate and write settings to a TOML file.

    Raises:
        ApplicationError: If validation or the write fails.
    """
    config_path = Path(config_path)
    try:
        Settings.model_validate(settings.model_dump())
        settings.to_toml_file(config_path)
    except (ValidationError, OSError) as e:
        raise ApplicationError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Configuration save failed: {e}",
            context=ErrorContext(
                operation="save_settings",
                additional_data={"config_path": str(config_path)},
            ),
            original_error=e,
        ) from e

    logger.info("Configuration saved to %s", config_path)


__all__ = ["load_settings", "save_settings"]
