"""
Data models for Twinscan core operations.

This module defines the fundamental data structures shared by the hasher,
the signature builder, the work scheduler and the groupers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from twinscan.shared.errors import UnreadableFileError, create_unreadable_file_error

# Lowercase hex SHA-256 of a file's full content
ContentDigest = str

# (completed, total, current_file_name)
ProgressCallback = Callable[[int, int, Optional[str]], None]


class ScanMode(str, Enum):
    """Detection modes accepted by the engine."""

    EXACT = "exact"
    FILENAME = "filename"
    SIMILARITY = "similarity"
    MULTI_CRITERIA = "multi-criteria"


class FilenameMode(str, Enum):
    """Filename comparison modes, in increasing permissiveness."""

    EXACT = "exact"
    EXACT_BASE = "exact-base"
    SMART = "smart"
    FUZZY = "fuzzy"


class Criterion(str, Enum):
    """Detection strategies combined by multi-criteria mode."""

    EXACT = "exact"
    FILENAME = "filename"
    SIMILARITY = "similarity"


class ArtifactKind(str, Enum):
    """Per-file artifacts the work scheduler can compute."""

    DIGEST = "digest"
    SIGNATURE = "signature"


@runtime_checkable
class ContentSource(Protocol):
    """Anything that can hand over a file's full byte content.

    ``pathlib.Path`` satisfies this protocol, as does InMemoryContent.
    """

    def read_bytes(self) -> bytes:
        """Return the complete byte content."""


@dataclass(frozen=True)
class InMemoryContent:
    """ContentSource over bytes already held in memory."""

    data: bytes

    def read_bytes(self) -> bytes:
        return self.data


class FileRecord(BaseModel):
    """
    A caller-owned file entry supplied to a detection run.

    The engine references these records and never copies or mutates them.
    ``path`` is the unique key within a batch.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str = Field(
        ...,
        min_length=1,
        description="Unique identifier of the file within a batch",
    )
    name: str = Field(
        ...,
        description="File name including extension",
    )
    size: int = Field(
        default=0,
        ge=0,
        description="File size in bytes",
    )
    last_modified: float = Field(
        default=0.0,
        description="Last modification time as Unix timestamp",
    )
    content: Any = Field(
        ...,
        exclude=True,
        repr=False,
        description="Byte-content accessor exposing read_bytes()",
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Any) -> Any:
        """Ensure the content accessor can be read."""
        if not isinstance(v, ContentSource):
            msg = f"content must expose read_bytes(), got {type(v).__name__}"
            raise ValueError(msg)
        return v

    @classmethod
    def from_path(cls, path: str | Path) -> FileRecord:
        """Build a record for a file on disk.

        Args:
            path: Location of the file.

        Returns:
            FileRecord whose content is read lazily from ``path``.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        file_path = Path(path)
        stat = file_path.stat()
        return cls(
            path=str(file_path),
            name=file_path.name,
            size=stat.st_size,
            last_modified=stat.st_mtime,
            content=file_path,
        )

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        path: str | None = None,
        last_modified: float = 0.0,
    ) -> FileRecord:
        """Build a record over in-memory bytes.

        Example:
            >>> record = FileRecord.from_bytes("a.txt", b"hello")
            >>> record.size
            5
        """
        return cls(
            path=path or name,
            name=name,
            size=len(data),
            last_modified=last_modified,
            content=InMemoryContent(data),
        )

    def read_bytes(self) -> bytes:
        """Read the full content through the caller's accessor.

        Raises:
            UnreadableFileError: If the accessor raises anything or returns
                something other than bytes.
        """
        try:
            data = self.content.read_bytes()
        except UnreadableFileError:
            raise
        except Exception as e:
            raise create_unreadable_file_error(self.path, e) from e

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise create_unreadable_file_error(
                self.path,
                TypeError(f"read_bytes() returned {type(data).__name__}, expected bytes"),
            )
        return bytes(data)

    def __str__(self) -> str:
        return f"FileRecord: {self.name}"


@dataclass(frozen=True)
class SimilaritySignature:
    """MinHash signature of a file's shingle set.

    Attributes:
        values: One minimum hash value per hash function (length N).
        num_perm: Number of hash functions (N).
        shingle_size: Bytes per shingle (k).
        shingle_count: Distinct shingles observed.
        empty: True for zero-byte input; empty signatures never match.
    """

    values: tuple[int, ...]
    num_perm: int
    shingle_size: int
    shingle_count: int = 0
    empty: bool = False

    def is_compatible(self, other: SimilaritySignature) -> bool:
        """Check whether two signatures were built with the same parameters."""
        return self.num_perm == other.num_perm and self.shingle_size == other.shingle_size

    def similarity(self, other: SimilaritySignature) -> float:
        """Estimate Jaccard similarity as matching positions / N.

        Example:
            >>> sig = SimilaritySignature(values=(1, 2, 3, 4), num_perm=4, shingle_size=4)
            >>> other = SimilaritySignature(values=(1, 2, 0, 0), num_perm=4, shingle_size=4)
            >>> sig.similarity(other)
            0.5
        """
        if self.empty or other.empty or not self.is_compatible(other):
            return 0.0
        matches = sum(1 for a, b in zip(self.values, other.values) if a == b)
        return matches / self.num_perm


@dataclass(frozen=True)
class FileFailure:
    """A file that was dropped from digest/signature grouping."""

    path: str
    name: str
    error_code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "path": self.path,
            "name": self.name,
            "error_code": self.error_code,
            "message": self.message,
        }


__all__ = [
    "ArtifactKind",
    "ContentDigest",
    "ContentSource",
    "Criterion",
    "FileFailure",
    "FileRecord",
    "FilenameMode",
    "InMemoryContent",
    "ProgressCallback",
    "ScanMode",
    "SimilaritySignature",
]
