"""Data models for duplicate groups.

This module defines the Group produced by every grouper and the
MergeEvidence attached to multi-criteria groups, providing transparency
about which detection strategies implicated a file cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from twinscan.core.models import FileRecord


class GroupKind(str, Enum):
    """Which strategy produced a group."""

    EXACT = "exact"
    FILENAME = "filename"
    SIMILARITY = "similarity"
    MULTI_CRITERIA = "multi-criteria"


@dataclass
class MergeEvidence:
    """Why a multi-criteria group was formed.

    Attributes:
        primary_criterion: Criterion currently leading the group.
            Example: "exact"
        criteria_used: Every criterion that implicated the group's files,
            in the order they were recorded, without repeats.
            Example: ["exact", "filename"]
        confidence: Corroboration score in [0, 1].
        criterion_metadata: Per-criterion details of the source groups.
            Example: {"exact": {"digest": "ab12..."}, "filename": {...}}

    Example:
        >>> evidence = MergeEvidence(primary_criterion="exact", criteria_used=["exact"], confidence=0.9)
        >>> evidence.add_criterion("filename")
        >>> evidence.criteria_used
        ['exact', 'filename']
    """

    primary_criterion: str
    criteria_used: list[str] = field(default_factory=list)
    confidence: float = 0.0
    criterion_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    def add_criterion(self, criterion: str) -> None:
        """Record a corroborating criterion once."""
        if criterion not in self.criteria_used:
            self.criteria_used.append(criterion)

    def to_dict(self) -> dict[str, object]:
        """Convert evidence to dictionary for logging/serialization."""
        return {
            "primary_criterion": self.primary_criterion,
            "criteria_used": list(self.criteria_used),
            "confidence": self.confidence,
            "criterion_metadata": {k: dict(v) for k, v in self.criterion_metadata.items()},
        }


@dataclass
class Group:
    """A group of duplicate or near-duplicate files.

    Every group a grouper returns has at least two files. Which optional
    metadata fields are set depends on ``kind``: ``digest`` for exact
    groups, ``normalized_base_name``/``extension``/``filename_mode`` for
    filename groups, ``avg_similarity`` for filename and similarity groups
    and ``evidence`` for multi-criteria groups.

    Attributes:
        kind: Strategy that produced this group.
        files: Member records, in deterministic order.
        digest: Shared content digest (exact).
        normalized_base_name: Seed file's normalized base name (filename).
        extension: Seed file's extension (filename).
        filename_mode: Mode used for scoring (filename).
        avg_similarity: Mean pairwise similarity inside the group.
        evidence: Merge evidence (multi-criteria).
        suggested_keep: Path of the file a caller would most likely keep.

    Example:
        >>> group = Group(kind=GroupKind.EXACT, files=[a, b], digest="ab12")
        >>> group.file_count
        2
    """

    kind: GroupKind
    files: list[FileRecord] = field(default_factory=list)
    digest: str | None = None
    normalized_base_name: str | None = None
    extension: str | None = None
    filename_mode: str | None = None
    avg_similarity: float | None = None
    evidence: MergeEvidence | None = None
    suggested_keep: str | None = None

    def add_file(self, file: FileRecord) -> None:
        self.files.append(file)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def wasted_space(self) -> int:
        """Bytes reclaimable by keeping only the largest file."""
        if not self.files:
            return 0
        return self.total_size - max(f.size for f in self.files)

    @property
    def confidence(self) -> float | None:
        return self.evidence.confidence if self.evidence else None

    def metadata(self) -> dict[str, Any]:
        """Kind-specific metadata, omitting unset fields."""
        data: dict[str, Any] = {
            "digest": self.digest,
            "normalized_base_name": self.normalized_base_name,
            "extension": self.extension,
            "filename_mode": self.filename_mode,
            "avg_similarity": self.avg_similarity,
        }
        return {k: v for k, v in data.items() if v is not None}

    def to_dict(self) -> dict[str, object]:
        """Convert group to dictionary for logging/serialization.

        Example:
            >>> Group(kind=GroupKind.EXACT).to_dict()["kind"]
            'exact'
        """
        return {
            "kind": self.kind.value,
            "file_count": self.file_count,
            "files": self.paths,
            "total_size": self.total_size,
            "wasted_space": self.wasted_space,
            **self.metadata(),
            "evidence": self.evidence.to_dict() if self.evidence else None,
            "suggested_keep": self.suggested_keep,
        }


__all__ = ["Group", "GroupKind", "MergeEvidence"]
