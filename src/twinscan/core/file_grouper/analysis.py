"""Per-group analysis for reviewing duplicate groups.

This module explains a group to a reviewer: how each file's name
decomposes, which pairs of files are closely related, and what the group
as a whole looks like (versions, copies, suspicious size spread).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from twinscan.core.file_grouper.models import Group
from twinscan.core.filename_normalizer import FilenameNormalizer, FilenameProfile, PatternKind
from twinscan.core.models import FileRecord, FilenameMode

logger = logging.getLogger(__name__)

# Relationships weaker than this are not reported
RELATIONSHIP_MIN_STRENGTH = 0.5
# Size difference weight in relationship strength
SIZE_DIFFERENCE_PENALTY = 0.5
# Largest file above this multiple of the mean flags a size variation
SIZE_VARIATION_RATIO = 1.5


@dataclass(frozen=True)
class FileRelationship:
    """How strongly one group member relates to another."""

    other_file: str
    filename_similarity: float
    size_difference: float
    strength: float

    def to_dict(self) -> dict[str, object]:
        return {
            "other_file": self.other_file,
            "filename_similarity": self.filename_similarity,
            "size_difference": self.size_difference,
            "strength": self.strength,
        }


@dataclass
class FileAnalysis:
    """A group member with its filename profile and strong relationships."""

    file: FileRecord
    profile: FilenameProfile
    relationships: list[FileRelationship] = field(default_factory=list)


@dataclass(frozen=True)
class GroupInsight:
    """A reviewer-facing observation about a group."""

    kind: str
    message: str
    recommendation: str


@dataclass
class GroupAnalysis:
    """Full analysis of one group."""

    group: Group
    files: list[FileAnalysis] = field(default_factory=list)
    insights: list[GroupInsight] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.group.kind.value,
            "primary_criterion": self.group.evidence.primary_criterion if self.group.evidence else None,
            "criteria_used": list(self.group.evidence.criteria_used) if self.group.evidence else [],
            "confidence": self.group.confidence,
            "files": [
                {
                    "path": item.file.path,
                    "name": item.file.name,
                    "size": item.file.size,
                    "profile": item.profile.to_dict(),
                    "relationships": [r.to_dict() for r in item.relationships],
                }
                for item in self.files
            ],
            "insights": [
                {"kind": i.kind, "message": i.message, "recommendation": i.recommendation}
                for i in self.insights
            ],
        }


def relate_files(
    file_a: FileRecord,
    file_b: FileRecord,
    normalizer: FilenameNormalizer | None = None,
) -> FileRelationship:
    """Relate two files by smart-mode name similarity and size difference.

    strength = filename similarity x (1 - size difference x 0.5), where the
    size difference is |a - b| / max(a, b) (0 when both files are empty).
    """
    normalizer = normalizer or FilenameNormalizer()
    similarity = normalizer.similarity(file_a.name, file_b.name, FilenameMode.SMART)
    largest = max(file_a.size, file_b.size)
    size_difference = abs(file_a.size - file_b.size) / largest if largest else 0.0
    return FileRelationship(
        other_file=file_b.name,
        filename_similarity=similarity,
        size_difference=size_difference,
        strength=similarity * (1 - size_difference * SIZE_DIFFERENCE_PENALTY),
    )


def generate_insights(files: list[FileAnalysis]) -> list[GroupInsight]:
    """Derive versioning, copies and size-variation insights."""
    insights: list[GroupInsight] = []
    if not files:
        return insights

    patterns = [item.profile.detected_patterns for item in files]

    if any(PatternKind.VERSION in p or PatternKind.NUMBER in p for p in patterns):
        insights.append(
            GroupInsight(
                kind="versioning",
                message="This group appears to contain different versions of the same file",
                recommendation="Keep the most recent version and delete older ones",
            ),
        )

    if any(PatternKind.COPY in p or PatternKind.DUPLICATE in p for p in patterns):
        insights.append(
            GroupInsight(
                kind="copies",
                message="This group contains files that appear to be copies",
                recommendation="Keep the original and delete the copies",
            ),
        )

    sizes = [item.file.size for item in files]
    mean_size = sum(sizes) / len(sizes)
    if max(sizes) > mean_size * SIZE_VARIATION_RATIO:
        insights.append(
            GroupInsight(
                kind="size_variation",
                message="Files in this group have significantly different sizes",
                recommendation="Review carefully - they might not be true duplicates",
            ),
        )

    return insights


def analyze_group(group: Group, normalizer: FilenameNormalizer | None = None) -> GroupAnalysis:
    """Analyze a duplicate group for review.

    Args:
        group: Any group produced by a detection run.
        normalizer: Optional FilenameNormalizer instance.

    Returns:
        GroupAnalysis with per-file profiles, relationships stronger than
        0.5 and group insights.

    Example:
        >>> analysis = analyze_group(group)
        >>> [i.kind for i in analysis.insights]
        ['copies']
    """
    normalizer = normalizer or FilenameNormalizer()
    analysis = GroupAnalysis(group=group)

    for file in group.files:
        item = FileAnalysis(file=file, profile=normalizer.profile(file.name))
        for other in group.files:
            if other is file:
                continue
            relationship = relate_files(file, other, normalizer)
            if relationship.strength > RELATIONSHIP_MIN_STRENGTH:
                item.relationships.append(relationship)
        analysis.files.append(item)

    analysis.insights = generate_insights(analysis.files)
    logger.debug(
        "Analyzed %s group of %d files: %d insights",
        group.kind.value,
        group.file_count,
        len(analysis.insights),
    )
    return analysis


__all__ = [
    "FileAnalysis",
    "FileRelationship",
    "GroupAnalysis",
    "GroupInsight",
    "analyze_group",
    "generate_insights",
    "relate_files",
]
