"""Content-similarity matcher using MinHash signatures.

This module clusters files whose estimated Jaccard similarity meets a
threshold. Pairwise similarity is computed row by row with numpy; pairs at
or above the threshold become edges of an undirected graph whose connected
components are the resulting groups.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from twinscan.core.cancellation import CancellationToken, check_cancelled
from twinscan.core.file_grouper.models import Group, GroupKind
from twinscan.core.models import FileRecord, ProgressCallback, SimilaritySignature
from twinscan.shared.constants import Progress, Similarity

logger = logging.getLogger(__name__)


class _UnionFind:
    """Disjoint sets over 0..n-1 with path halving."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, item: int) -> int:
        parent = self.parent
        while parent[item] != item:
            parent[item] = parent[parent[item]]
            item = parent[item]
        return item

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        # Smaller index stays root so component order follows input order
        if root_a < root_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_a] = root_b


class SimilarityMatcher:
    """Clusters files by MinHash signature agreement.

    Attributes:
        component_name: Identifier for this matcher ("similarity").
        threshold: Minimum estimated similarity for an edge, in (0, 1].
        row_batch: Signature rows compared between cancellation checks.

    Example:
        >>> matcher = SimilarityMatcher(threshold=0.8)
        >>> groups = matcher.match([(a, sig_a), (b, sig_b), (c, sig_c)])
        >>> [f.name for f in groups[0].files]
        ['a.bin', 'b.bin']
    """

    component_name = "similarity"

    def __init__(
        self,
        threshold: float = Similarity.DEFAULT_THRESHOLD,
        row_batch: int = Progress.PAIRWISE_ROW_BATCH,
    ) -> None:
        """Initialize the similarity matcher.

        Args:
            threshold: Minimum estimated similarity, in (0, 1]. At 1.0 only
                identical signatures match.
            row_batch: Rows compared between cancellation checks.

        Raises:
            ValueError: If threshold is outside (0, 1] or row_batch < 1.
        """
        if not 0.0 < threshold <= 1.0:
            msg = f"Threshold must be in (0, 1], got {threshold}"
            raise ValueError(msg)
        if row_batch < 1:
            msg = f"row_batch must be positive, got {row_batch}"
            raise ValueError(msg)

        self.threshold = threshold
        self.row_batch = row_batch

    def match(
        self,
        entries: Sequence[tuple[FileRecord, SimilaritySignature]],
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[Group]:
        """Cluster (record, signature) pairs into similarity groups.

        The cancellation token is polled at the start of every batch of
        rows; progress is reported in pairs compared after each batch.

        Args:
            entries: Pairs in input order. All signatures must share N and k.
            on_progress: Called with (pairs compared, total pairs, file name).
            cancel_token: Cooperative cancellation flag.

        Returns:
            Similarity groups in order of their first member, members in
            input order.

        Raises:
            ValueError: If signatures were built with different parameters.
            OperationCancelledError: If cancellation was observed.
        """
        n = len(entries)
        if n < 2:
            return []

        signatures = [signature for _, signature in entries]
        reference = signatures[0]
        if any(not reference.is_compatible(signature) for signature in signatures):
            msg = "All signatures must share the same num_perm and shingle_size"
            raise ValueError(msg)

        matrix = np.array([signature.values for signature in signatures], dtype=np.uint64)
        empty = np.array([signature.empty for signature in signatures], dtype=bool)
        num_perm = reference.num_perm

        sets = _UnionFind(n)
        total = n * (n - 1) // 2
        compared = 0
        edges = 0

        for batch_start in range(0, n - 1, self.row_batch):
            check_cancelled(cancel_token, "similarity_clustering", compared, total)

            for i in range(batch_start, min(batch_start + self.row_batch, n - 1)):
                compared += n - 1 - i
                if empty[i]:
                    continue
                scores = self._row_scores(matrix, empty, i, num_perm)
                for offset in np.flatnonzero(scores >= self.threshold):
                    sets.union(i, i + 1 + int(offset))
                    edges += 1

            if on_progress is not None:
                on_progress(compared, total, entries[min(batch_start + self.row_batch, n) - 1][0].name)

        components: dict[int, list[int]] = {}
        for index in range(n):
            components.setdefault(sets.find(index), []).append(index)

        groups = [
            Group(
                kind=GroupKind.SIMILARITY,
                files=[entries[index][0] for index in members],
                avg_similarity=self._average_similarity(matrix, members, num_perm),
            )
            for members in components.values()
            if len(members) > 1
        ]

        logger.info(
            "Similarity matcher (threshold=%.2f) found %d edges, %d groups over %d files",
            self.threshold,
            edges,
            len(groups),
            n,
        )
        return groups

    @staticmethod
    def _row_scores(matrix: np.ndarray, empty: np.ndarray, row: int, num_perm: int) -> np.ndarray:
        """Similarity of ``row`` against every later row; empty rows score 0."""
        scores = (matrix[row + 1 :] == matrix[row]).sum(axis=1) / num_perm
        scores[empty[row + 1 :]] = 0.0
        return scores

    @staticmethod
    def _average_similarity(matrix: np.ndarray, members: list[int], num_perm: int) -> float:
        """Mean similarity over every pair inside a component."""
        sub = matrix[members]
        total = 0.0
        pairs = 0
        for a in range(len(members) - 1):
            total += float((sub[a + 1 :] == sub[a]).sum()) / num_perm
            pairs += len(members) - 1 - a
        return total / pairs if pairs else 1.0


__all__ = ["SimilarityMatcher"]
