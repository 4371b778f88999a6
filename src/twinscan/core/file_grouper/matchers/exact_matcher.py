"""Exact-duplicate matcher.

Files sharing a content digest are grouped together.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from twinscan.core.file_grouper.models import Group, GroupKind
from twinscan.core.models import ContentDigest, FileRecord

logger = logging.getLogger(__name__)


class ExactMatcher:
    """Groups files by identical content digest.

    Buckets keep the order in which digests first appear, and files keep
    their input order inside a bucket, so output is deterministic.

    Example:
        >>> matcher = ExactMatcher()
        >>> groups = matcher.match([(a, "d1"), (b, "d1"), (c, "d2")])
        >>> [f.name for f in groups[0].files]
        ['a.txt', 'b.txt']
    """

    component_name = "exact"

    def match(self, entries: Sequence[tuple[FileRecord, ContentDigest]]) -> list[Group]:
        """Bucket (record, digest) pairs by digest.

        Args:
            entries: Pairs in input order.

        Returns:
            One exact Group per digest shared by two or more files.
        """
        if not entries:
            return []

        buckets: dict[ContentDigest, list[FileRecord]] = {}
        for record, digest in entries:
            buckets.setdefault(digest, []).append(record)

        groups = [
            Group(kind=GroupKind.EXACT, files=files, digest=digest, avg_similarity=1.0)
            for digest, files in buckets.items()
            if len(files) > 1
        ]

        logger.info(
            "Exact matcher grouped %d files into %d groups",
            len(entries),
            len(groups),
        )
        return groups


__all__ = ["ExactMatcher"]
