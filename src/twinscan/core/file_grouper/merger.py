"""
Multi-criteria merge of grouper results.

This module combines the exact, filename and similarity groups of one run
into a single ranked set of multi-criteria groups. The merge is a reduction
over an ownership map (file path -> merged group id): criteria are visited
in priority order, unowned files are claimed by a new merged group, and
files that are already owned corroborate their owner. Whether a
corroborating group also takes over the owner's lead is decided by the
pure function ``should_fold``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from twinscan.core.file_grouper.models import Group, GroupKind, MergeEvidence
from twinscan.core.models import Criterion
from twinscan.shared.constants import (
    DEFAULT_PRIORITY_ORDER,
    DEFAULT_WEIGHTS,
    Confidence,
    Similarity,
)

logger = logging.getLogger(__name__)


def compute_confidence(group: Group, criterion: str, weights: Mapping[str, float]) -> float:
    """Score how strongly a source group is corroborated.

    confidence = weight x size multiplier x criterion factor, capped at 1.0.
    The size multiplier grows by 0.1 per file beyond a pair (capped at 2.0);
    exact groups get a fixed 1.2 boost, the others scale by their average
    similarity (0.8 when unknown).

    Args:
        group: Source group from one grouper.
        criterion: Criterion that produced the group.
        weights: Per-criterion weights; missing criteria weigh 0.33.

    Returns:
        Confidence in [0, 1].

    Example:
        >>> pair = Group(kind=GroupKind.EXACT, files=[a, b])
        >>> compute_confidence(pair, "exact", {"exact": 0.5})
        0.6
    """
    weight = weights.get(criterion, Confidence.DEFAULT_WEIGHT)
    multiplier = min(
        Confidence.SIZE_MULTIPLIER_CAP,
        1.0 + (group.file_count - 2) * Confidence.SIZE_STEP,
    )

    if criterion == Criterion.EXACT.value:
        multiplier *= Confidence.EXACT_BOOST
    else:
        multiplier *= group.avg_similarity or Confidence.DEFAULT_AVG_SIMILARITY

    return min(Confidence.MAX, weight * multiplier)


def extract_metadata(group: Group, criterion: str) -> dict[str, Any]:
    """Per-criterion details of a source group kept as merge evidence."""
    if criterion == Criterion.EXACT.value:
        return {
            "digest": group.digest,
            "size": group.files[0].size if group.files else 0,
        }
    if criterion == Criterion.FILENAME.value:
        return {
            "normalized_base_name": group.normalized_base_name,
            "extension": group.extension,
            "filename_mode": group.filename_mode,
            "avg_similarity": group.avg_similarity,
        }
    if criterion == Criterion.SIMILARITY.value:
        return {
            "avg_similarity": group.avg_similarity,
            "algorithm": Similarity.ALGORITHM,
        }
    return {}


def should_fold(
    owner: MergeEvidence,
    candidate: MergeEvidence,
    priority_order: Sequence[str],
) -> bool:
    """Decide whether a candidate group takes over an owner's lead.

    A candidate folds when its primary criterion ranks strictly higher
    than the owner's, or ranks the same and carries higher confidence.

    Args:
        owner: Evidence of the merged group that owns a shared file.
        candidate: Evidence of the incoming source group.
        priority_order: Criteria, highest priority first.

    Returns:
        True when the candidate should fold into the owner.

    Example:
        >>> owner = MergeEvidence(primary_criterion="filename", confidence=0.4)
        >>> candidate = MergeEvidence(primary_criterion="exact", confidence=0.3)
        >>> should_fold(owner, candidate, ["exact", "filename"])
        True
    """
    owner_rank = _rank(owner.primary_criterion, priority_order)
    candidate_rank = _rank(candidate.primary_criterion, priority_order)

    if candidate_rank < owner_rank:
        return True
    if candidate_rank == owner_rank:
        return candidate.confidence > owner.confidence
    return False


def reconcile(
    owner: MergeEvidence,
    candidate: MergeEvidence,
    priority_order: Sequence[str],
) -> MergeEvidence:
    """Return the owner's evidence after a candidate implicated its files.

    The candidate's criteria are always recorded on the owner. When
    ``should_fold`` agrees, confidence is averaged, the candidate's
    metadata replaces the owner's for the same criterion and the primary
    criterion moves to the candidate's. Neither input is modified.
    """
    result = MergeEvidence(
        primary_criterion=owner.primary_criterion,
        criteria_used=list(owner.criteria_used),
        confidence=owner.confidence,
        criterion_metadata={k: dict(v) for k, v in owner.criterion_metadata.items()},
    )
    for criterion in candidate.criteria_used:
        result.add_criterion(criterion)

    if should_fold(owner, candidate, priority_order):
        result.criterion_metadata.update({k: dict(v) for k, v in candidate.criterion_metadata.items()})
        result.confidence = (owner.confidence + candidate.confidence) / 2
        result.primary_criterion = candidate.primary_criterion
    else:
        for criterion, metadata in candidate.criterion_metadata.items():
            result.criterion_metadata.setdefault(criterion, dict(metadata))

    return result


def _rank(criterion: str, priority_order: Sequence[str]) -> int:
    try:
        return list(priority_order).index(criterion)
    except ValueError:
        return len(priority_order)


@dataclass
class MergeState:
    """Transient ownership map used during one merge.

    Attributes:
        owners: File path -> index of the merged group owning it.
        merged: Every merged group created so far, by index.
        kept: Indexes of merged groups that survived the size check.
    """

    owners: dict[str, int] = field(default_factory=dict)
    merged: list[Group] = field(default_factory=list)
    kept: list[int] = field(default_factory=list)


class PriorityMerger:
    """Combines per-criterion groups into ranked multi-criteria groups.

    Attributes:
        priority_order: Criteria, highest priority first.
        weights: Per-criterion confidence weights.

    Example:
        >>> merger = PriorityMerger(priority_order=["exact", "filename"])
        >>> groups = merger.merge({"exact": exact_groups, "filename": filename_groups})
        >>> groups[0].evidence.criteria_used
        ['exact', 'filename']
    """

    def __init__(
        self,
        priority_order: Sequence[str] = DEFAULT_PRIORITY_ORDER,
        weights: Mapping[str, float] | None = None,
    ) -> None:
        """Initialize the merger.

        Raises:
            ValueError: If priority_order is empty, repeats a criterion or
                names an unknown one.
        """
        order = [Criterion(c).value for c in priority_order]
        if not order:
            msg = "priority_order must name at least one criterion"
            raise ValueError(msg)
        if len(set(order)) != len(order):
            msg = f"priority_order contains duplicates: {order}"
            raise ValueError(msg)

        self.priority_order: tuple[str, ...] = tuple(order)
        self.weights: dict[str, float] = dict(DEFAULT_WEIGHTS if weights is None else weights)

    def merge(self, results: Mapping[str, Sequence[Group]]) -> list[Group]:
        """Merge grouper outputs by priority.

        Args:
            results: Criterion name -> that grouper's groups. Criteria not
                in ``priority_order`` are ignored.

        Returns:
            Multi-criteria groups sorted by confidence, highest first. Each
            file appears in at most one group.
        """
        state = MergeState()

        for criterion in self.priority_order:
            for source in results.get(criterion, ()):
                self._absorb(state, source, criterion)

        final = [state.merged[index] for index in state.kept]
        # Stable: equal confidence keeps creation order
        final.sort(key=lambda g: g.evidence.confidence if g.evidence else 0.0, reverse=True)

        logger.info(
            "PriorityMerger produced %d groups from %s",
            len(final),
            {c: len(results.get(c, ())) for c in self.priority_order},
        )
        return final

    def _absorb(self, state: MergeState, source: Group, criterion: str) -> None:
        """Fold one source group into the merge state."""
        candidate = MergeEvidence(
            primary_criterion=criterion,
            criteria_used=[criterion],
            confidence=compute_confidence(source, criterion, self.weights),
            criterion_metadata={criterion: extract_metadata(source, criterion)},
        )
        group_id = len(state.merged)
        merged = Group(
            kind=GroupKind.MULTI_CRITERIA,
            digest=source.digest,
            normalized_base_name=source.normalized_base_name,
            extension=source.extension,
            filename_mode=source.filename_mode,
            avg_similarity=source.avg_similarity,
            evidence=candidate,
        )
        state.merged.append(merged)

        corroborated: set[int] = set()
        for file in source.files:
            owner_id = state.owners.get(file.path)
            if owner_id is None:
                state.owners[file.path] = group_id
                merged.add_file(file)
                continue
            if owner_id in corroborated:
                continue
            corroborated.add(owner_id)
            owner = state.merged[owner_id]
            if owner.evidence is not None:
                owner.evidence = reconcile(owner.evidence, candidate, self.priority_order)

        if merged.file_count > 1:
            state.kept.append(group_id)
        else:
            # A lone leftover stays available to lower-priority criteria
            for file in merged.files:
                del state.owners[file.path]


__all__ = [
    "MergeState",
    "PriorityMerger",
    "compute_confidence",
    "extract_metadata",
    "reconcile",
    "should_fold",
]
