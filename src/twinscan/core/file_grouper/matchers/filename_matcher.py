"""Filename-based duplicate matcher.

This module implements greedy grouping of files by filename similarity
under one of the four filename modes (exact, exact-base, smart, fuzzy).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from twinscan.core.cancellation import CancellationToken, check_cancelled
from twinscan.core.file_grouper.models import Group, GroupKind
from twinscan.core.filename_normalizer import FilenameNormalizer, FilenameProfile
from twinscan.core.models import FilenameMode, FileRecord, ProgressCallback
from twinscan.shared.constants import FilenameScores, Progress

logger = logging.getLogger(__name__)


class FilenameMatcher:
    """Groups files whose names score at or above a threshold.

    For each file not yet placed, every later unplaced file is compared
    with it; files scoring at or above the threshold join its group. The
    first file of a group (its seed) supplies the group's normalized base
    name and extension.

    Attributes:
        component_name: Identifier for this matcher ("filename").
        mode: Filename comparison mode.
        threshold: Minimum score for joining a group, in (0, 1].
        normalizer: FilenameNormalizer used for scoring.

    Example:
        >>> matcher = FilenameMatcher(mode=FilenameMode.SMART, threshold=0.8)
        >>> groups = matcher.match([photo, photo_copy, invoice])
        >>> groups[0].normalized_base_name
        'photo'
    """

    component_name = "filename"

    def __init__(
        self,
        mode: FilenameMode | str = FilenameMode.SMART,
        threshold: float = FilenameScores.DEFAULT_THRESHOLD,
        normalizer: FilenameNormalizer | None = None,
    ) -> None:
        """Initialize the filename matcher.

        Args:
            mode: Filename comparison mode.
            threshold: Minimum score for joining a group, in (0, 1].
            normalizer: Optional FilenameNormalizer instance.

        Raises:
            ValueError: If mode is unknown or threshold is outside (0, 1].
        """
        if not 0.0 < threshold <= 1.0:
            msg = f"Threshold must be in (0, 1], got {threshold}"
            raise ValueError(msg)

        self.mode = FilenameMode(mode)
        self.threshold = threshold
        self.normalizer = normalizer or FilenameNormalizer()

    def match(
        self,
        entries: Sequence[FileRecord],
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[Group]:
        """Group records by filename similarity.

        Progress is reported in comparisons completed against the
        theoretical n(n-1)/2 total, every 100 comparisons and once at the
        end. The cancellation token is polled before each seed file.

        Args:
            entries: Records in input order.
            on_progress: Called with (comparisons, total, seed file name).
            cancel_token: Cooperative cancellation flag.

        Returns:
            Filename groups, each sorted by file name.

        Raises:
            OperationCancelledError: If cancellation was observed.
        """
        n = len(entries)
        if n < 2:
            return []

        profiles = [self.normalizer.profile(record.name) for record in entries]
        processed = [False] * n
        total = n * (n - 1) // 2
        comparisons = 0
        groups: list[Group] = []

        for i in range(n):
            check_cancelled(cancel_token, "filename_grouping", comparisons, total)
            if processed[i]:
                continue
            processed[i] = True
            members = [i]

            for j in range(i + 1, n):
                if processed[j]:
                    continue
                score = self.normalizer.score_profiles(profiles[i], profiles[j], self.mode)
                comparisons += 1
                if score >= self.threshold:
                    members.append(j)
                    processed[j] = True
                if on_progress is not None and comparisons % Progress.COMPARISON_INTERVAL == 0:
                    on_progress(comparisons, total, entries[i].name)

            if len(members) > 1:
                # Stable sort: equal names keep input order
                members.sort(key=lambda index: entries[index].name)
                groups.append(
                    Group(
                        kind=GroupKind.FILENAME,
                        files=[entries[index] for index in members],
                        normalized_base_name=profiles[i].normalized_base_name,
                        extension=profiles[i].extension,
                        filename_mode=self.mode.value,
                        avg_similarity=self._average_similarity([profiles[index] for index in members]),
                    ),
                )

        if on_progress is not None:
            on_progress(total, total, None)

        logger.info(
            "Filename matcher (%s, threshold=%.2f) grouped %d files into %d groups",
            self.mode.value,
            self.threshold,
            n,
            len(groups),
        )
        return groups

    def _average_similarity(self, profiles: list[FilenameProfile]) -> float:
        """Mean pairwise score inside a group, using the matcher's mode."""
        scores = [
            self.normalizer.score_profiles(profiles[a], profiles[b], self.mode)
            for a in range(len(profiles))
            for b in range(a + 1, len(profiles))
        ]
        return sum(scores) / len(scores) if scores else 1.0


__all__ = ["FilenameMatcher"]
