"""Keep-suggestion module for Twinscan.

This module suggests which member of a duplicate group a caller would most
likely keep. The suggestion is advisory: nothing here deletes, moves or
otherwise touches files.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from twinscan.core.file_grouper.models import Group
from twinscan.core.filename_normalizer import FilenameNormalizer
from twinscan.core.models import FileRecord

logger = logging.getLogger(__name__)


class KeepPolicy(str, Enum):
    """Selection policies for the file to keep."""

    KEEP_ORIGINAL = "keep_original"
    KEEP_OLDEST = "keep_oldest"
    KEEP_NEWEST = "keep_newest"
    KEEP_LARGEST = "keep_largest"
    KEEP_FIRST = "keep_first"


@dataclass
class ResolutionConfig:
    """Configuration for keep suggestions.

    Attributes:
        policy: Selection policy.
            Example: KeepPolicy.KEEP_NEWEST keeps the most recently modified file
    """

    policy: KeepPolicy = KeepPolicy.KEEP_ORIGINAL


class DuplicateResolver:
    """Selects the file to keep from a group of duplicates.

    Policies:
    - keep_original: fewest naming decorations ("copy", "(1)", "_v2" ...),
      then oldest, then shortest name, then input order
    - keep_oldest / keep_newest: by last modification time
    - keep_largest: by size
    - keep_first: first file in group order

    Ties always fall back to group order, so suggestions are deterministic.

    Example:
        >>> resolver = DuplicateResolver()
        >>> files = [
        ...     FileRecord.from_bytes("report - Copy.txt", b"x", last_modified=200.0),
        ...     FileRecord.from_bytes("report.txt", b"x", last_modified=100.0),
        ... ]
        >>> resolver.select_keep(files).name
        'report.txt'
    """

    def __init__(
        self,
        config: ResolutionConfig | None = None,
        normalizer: FilenameNormalizer | None = None,
    ) -> None:
        """Initialize the duplicate resolver.

        Args:
            config: Resolution configuration. If None, uses keep_original.
            normalizer: Filename normalizer used to count decorations.
        """
        self.config = config or ResolutionConfig()
        self.normalizer = normalizer or FilenameNormalizer()

    def select_keep(self, files: Sequence[FileRecord]) -> FileRecord:
        """Select the file to keep.

        Args:
            files: Group members, in group order.

        Returns:
            The file the configured policy would keep.

        Raises:
            ValueError: If files is empty.
        """
        if not files:
            msg = "Cannot select a file to keep: files list is empty"
            raise ValueError(msg)

        if len(files) == 1:
            return files[0]

        policy = KeepPolicy(self.config.policy)
        indexed = list(enumerate(files))

        if policy is KeepPolicy.KEEP_FIRST:
            return files[0]
        if policy is KeepPolicy.KEEP_OLDEST:
            _, best = min(indexed, key=lambda item: (item[1].last_modified, item[0]))
        elif policy is KeepPolicy.KEEP_NEWEST:
            _, best = min(indexed, key=lambda item: (-item[1].last_modified, item[0]))
        elif policy is KeepPolicy.KEEP_LARGEST:
            _, best = min(indexed, key=lambda item: (-item[1].size, item[0]))
        else:
            _, best = min(indexed, key=lambda item: self._original_key(item[0], item[1]))

        logger.debug("Selected %s to keep using %s", best.name, policy.value)
        return best

    def annotate(self, groups: Sequence[Group]) -> None:
        """Set ``suggested_keep`` on every group in place."""
        for group in groups:
            if group.files:
                group.suggested_keep = self.select_keep(group.files).path

    def _original_key(self, index: int, file: FileRecord) -> tuple[int, float, int, int]:
        """Sort key for keep_original: lower is more likely the original."""
        decorations = len(self.normalizer.profile(file.name).detected_patterns)
        return (decorations, file.last_modified, len(file.name), index)


def select_keep(
    files: Sequence[FileRecord],
    config: ResolutionConfig | None = None,
) -> FileRecord:
    """Convenience function to pick the file to keep.

    Args:
        files: Group members, in group order.
        config: Optional resolution configuration.

    Returns:
        The file the configured policy would keep.

    Raises:
        ValueError: If files is empty.
    """
    return DuplicateResolver(config=config).select_keep(files)


__all__ = ["DuplicateResolver", "KeepPolicy", "ResolutionConfig", "select_keep"]
