"""File grouper module for Twinscan.

This module groups duplicate and near-duplicate files by content digest,
filename pattern and content similarity, and merges those groupings by
priority.

Public API (Stable):
    - Group, GroupKind, MergeEvidence: Data models
    - PriorityMerger: Multi-criteria merge
    - analyze_group: Review analysis of a group

Advanced API (For custom implementations):
    - BaseMatcher: Protocol for custom matchers
    - ExactMatcher, FilenameMatcher, SimilarityMatcher: Grouping strategies
    - should_fold, compute_confidence: Merge rules
    - DuplicateResolver: Suggests the file to keep
"""

from __future__ import annotations

from twinscan.core.file_grouper.analysis import GroupAnalysis, GroupInsight, analyze_group
from twinscan.core.file_grouper.duplicate_resolver import (
    DuplicateResolver,
    KeepPolicy,
    ResolutionConfig,
)
from twinscan.core.file_grouper.matchers import (
    BaseMatcher,
    ExactMatcher,
    FilenameMatcher,
    SimilarityMatcher,
)
from twinscan.core.file_grouper.merger import (
    PriorityMerger,
    compute_confidence,
    should_fold,
)
from twinscan.core.file_grouper.models import Group, GroupKind, MergeEvidence

__all__ = [
    "BaseMatcher",
    "DuplicateResolver",
    "ExactMatcher",
    "FilenameMatcher",
    "Group",
    "GroupAnalysis",
    "GroupInsight",
    "GroupKind",
    "KeepPolicy",
    "MergeEvidence",
    "PriorityMerger",
    "ResolutionConfig",
    "SimilarityMatcher",
    "analyze_group",
    "compute_confidence",
    "should_fold",
]
