"""Logging configuration model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class LoggingSettings(BaseModel):
    """Logging configuration.

    Consumed by ``configure_logging``; nothing is configured until
    the caller asks for it.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    file: str | None = Field(
        default=None,
        description="Optional JSON log file path",
    )
    use_rich_console: bool = Field(
        default=True,
        description="Render console logs with rich instead of JSON",
    )


__all__ = ["LoggingSettings"]
