"""
Pytest configuration and shared fixtures for Twinscan tests.

This module provides file-record factories and deterministic byte
payloads used across the test modules.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Generator

import pytest

from twinscan.config import PerformanceSettings, Settings
from twinscan.core.engine import DetectionEngine
from twinscan.core.models import FileRecord

RecordFactory = Callable[..., FileRecord]


class FailingContent:
    """Content accessor whose reads always fail."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or PermissionError("access denied")

    def read_bytes(self) -> bytes:
        raise self.error


@pytest.fixture
def make_record() -> RecordFactory:
    """Factory building in-memory FileRecords.

    Returns:
        Callable (name, data, path=None, last_modified=0.0) -> FileRecord.
    """

    def _make(
        name: str,
        data: bytes = b"",
        path: str | None = None,
        last_modified: float = 0.0,
    ) -> FileRecord:
        return FileRecord.from_bytes(
            name,
            data,
            path=path or f"/test/{name}",
            last_modified=last_modified,
        )

    return _make


@pytest.fixture
def unreadable_record() -> FileRecord:
    """A record whose content accessor raises PermissionError."""
    return FileRecord(
        path="/test/locked.bin",
        name="locked.bin",
        size=128,
        content=FailingContent(),
    )


@pytest.fixture
def base_bytes() -> bytes:
    """4000 seeded pseudo-random bytes."""
    return random.Random(42).randbytes(4000)


@pytest.fixture
def near_bytes(base_bytes: bytes) -> bytes:
    """base_bytes with the last 100 bytes replaced (Jaccard around 0.95)."""
    return base_bytes[:3900] + random.Random(7).randbytes(100)


@pytest.fixture
def other_bytes() -> bytes:
    """4000 pseudo-random bytes unrelated to base_bytes."""
    return random.Random(99).randbytes(4000)


@pytest.fixture
def settings() -> Settings:
    """Default settings with small, fixed worker pools."""
    return Settings(
        performance=PerformanceSettings(hash_workers=2, similarity_workers=2),
    )


@pytest.fixture
def engine(settings: Settings) -> Generator[DetectionEngine, None, None]:
    """A DetectionEngine that is shut down after the test."""
    detection_engine = DetectionEngine(settings=settings)
    yield detection_engine
    detection_engine.shutdown()
