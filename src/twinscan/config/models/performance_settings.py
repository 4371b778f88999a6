"""Performance configuration model.

This module contains the performance configuration model for worker pool
sizing, progress cadence and resource warnings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from twinscan.shared.constants import FileCount, Memory, Progress


class PerformanceSettings(BaseModel):
    """Performance configuration.

    Worker counts left as None are derived from the CPU count when the
    scheduler starts: every core but one for hashing, half the cores for
    signature building.
    """

    hash_workers: int | None = Field(
        default=None,
        gt=0,
        description="Hashing pool size (None = derived from CPU count)",
    )
    similarity_workers: int | None = Field(
        default=None,
        gt=0,
        description="Signature pool size (None = derived from CPU count)",
    )
    progress_interval: int = Field(
        default=Progress.ARTIFACT_INTERVAL,
        gt=0,
        description="Completed files between progress reports",
    )
    max_files_warning: int = Field(
        default=FileCount.MEDIUM,
        gt=0,
        description="File count above which a performance warning is issued",
    )
    memory_warning_bytes: int = Field(
        default=Memory.WARNING_THRESHOLD,
        gt=0,
        description="Estimated memory above which a performance warning is issued",
    )


__all__ = ["PerformanceSettings"]
