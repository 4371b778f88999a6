"""Filename normalization and tiered filename similarity.

This module derives a FilenameProfile from a file name and scores pairs of
names under the four filename comparison modes (exact, exact-base, smart,
fuzzy). Everything here is a pure function of the name strings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from rapidfuzz.distance import Levenshtein

from twinscan.core.models import FilenameMode
from twinscan.shared.constants import FilenameScores
from twinscan.shared.constants.filename_patterns import (
    BRACKETS_PATTERN,
    COPY_PATTERN,
    DUPLICATE_PATTERN,
    MAX_FILENAME_LENGTH,
    NUMBER_PATTERN,
    PARENTHESES_PATTERN,
    TIMESTAMP_PATTERN,
    VERSION_PATTERN,
)

logger = logging.getLogger(__name__)


class PatternKind(str, Enum):
    """Naming-convention decorations recognized at the end of a base name."""

    COPY = "copy"
    NUMBER = "number"
    VERSION = "version"
    DUPLICATE = "duplicate"
    TIMESTAMP = "timestamp"
    BRACKETS = "brackets"
    PARENTHESES = "parentheses"


# Stripping order: timestamps go before versions so the generic trailing
# number rule cannot eat the last field of a date.
_DECORATION_PATTERNS: tuple[tuple[PatternKind, re.Pattern[str]], ...] = (
    (PatternKind.COPY, re.compile(COPY_PATTERN, re.IGNORECASE)),
    (PatternKind.NUMBER, re.compile(NUMBER_PATTERN, re.IGNORECASE)),
    (PatternKind.DUPLICATE, re.compile(DUPLICATE_PATTERN, re.IGNORECASE)),
    (PatternKind.TIMESTAMP, re.compile(TIMESTAMP_PATTERN, re.IGNORECASE)),
    (PatternKind.VERSION, re.compile(VERSION_PATTERN, re.IGNORECASE)),
    (PatternKind.BRACKETS, re.compile(BRACKETS_PATTERN, re.IGNORECASE)),
    (PatternKind.PARENTHESES, re.compile(PARENTHESES_PATTERN, re.IGNORECASE)),
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class FilenameProfile:
    """Canonical view of a file name.

    Attributes:
        original: The name as supplied.
        extension: Text after the last dot, lowercased; empty when the name
            has no dot or only a leading one.
        raw_base_name: Name minus extension, lowercased, nothing stripped.
        normalized_base_name: raw_base_name with decorations stripped and
            whitespace collapsed.
        detected_patterns: Decorations that were stripped.
    """

    original: str
    extension: str
    raw_base_name: str
    normalized_base_name: str
    detected_patterns: frozenset[PatternKind] = field(default_factory=frozenset)

    @property
    def normalized(self) -> str:
        """Normalized base name joined with the extension."""
        if not self.extension:
            return self.normalized_base_name
        return f"{self.normalized_base_name}.{self.extension}"

    def to_dict(self) -> dict[str, object]:
        return {
            "original": self.original,
            "extension": self.extension,
            "raw_base_name": self.raw_base_name,
            "normalized_base_name": self.normalized_base_name,
            "detected_patterns": sorted(p.value for p in self.detected_patterns),
            "normalized": self.normalized,
        }


class FilenameNormalizer:
    """Extracts base names and scores filename pairs.

    Scores follow a fixed tier ladder: identical raw base names first, then
    identical normalized base names, then "variation of" (one raw base name
    reduces to the other after stripping), and in fuzzy mode a Levenshtein
    ratio as the last resort.

    Example:
        >>> normalizer = FilenameNormalizer()
        >>> normalizer.profile("Report - Copy (2).PDF").normalized
        'report.pdf'
        >>> normalizer.similarity("photo.jpg", "photo (1).jpg", FilenameMode.SMART)
        0.9
    """

    def extract_extension(self, name: str) -> str:
        """Return the lowercased extension, or "" when there is none."""
        dot = name.rfind(".")
        return name[dot + 1 :].lower() if dot > 0 else ""

    def raw_base_name(self, name: str) -> str:
        """Return the lowercased name minus its extension."""
        dot = name.rfind(".")
        base = name[:dot] if dot > 0 else name
        return base.lower()

    def strip_decorations(self, base_name: str) -> tuple[str, frozenset[PatternKind]]:
        """Strip trailing decorations from a base name.

        Each pattern is applied at most once, in declaration order.

        Args:
            base_name: Base name without extension.

        Returns:
            Tuple of (stripped lowercased name, kinds that matched).
        """
        # Security: bound the input handed to the regex engine
        if len(base_name) > MAX_FILENAME_LENGTH:
            logger.warning(
                "Base name exceeds maximum length (%d), truncating: %s",
                MAX_FILENAME_LENGTH,
                base_name[:50] + "...",
            )
            base_name = base_name[:MAX_FILENAME_LENGTH]

        stripped = base_name
        detected: set[PatternKind] = set()
        for kind, pattern in _DECORATION_PATTERNS:
            stripped, count = pattern.subn("", stripped, count=1)
            if count:
                detected.add(kind)

        stripped = _WHITESPACE.sub(" ", stripped.strip()).lower()
        return stripped, frozenset(detected)

    def normalized_base_name(self, name: str) -> str:
        """Return the base name with decorations stripped."""
        return self.strip_decorations(self.raw_base_name(name))[0]

    def profile(self, name: str) -> FilenameProfile:
        """Build the FilenameProfile of a name.

        Args:
            name: File name including extension.

        Returns:
            FilenameProfile derived purely from ``name``.
        """
        raw_base = self.raw_base_name(name)
        normalized, detected = self.strip_decorations(raw_base)
        return FilenameProfile(
            original=name,
            extension=self.extract_extension(name),
            raw_base_name=raw_base,
            normalized_base_name=normalized,
            detected_patterns=detected,
        )

    def is_variation_of(self, base_a: str, base_b: str) -> bool:
        """Check whether the longer base name reduces to the shorter one.

        Example:
            >>> FilenameNormalizer().is_variation_of("draft_v2", "draft")
            True
        """
        if not base_a or not base_b:
            return False
        longer, shorter = (base_a, base_b) if len(base_a) > len(base_b) else (base_b, base_a)
        cleaned, _ = self.strip_decorations(longer)
        return cleaned == shorter

    def similarity(
        self,
        name_a: str,
        name_b: str,
        mode: FilenameMode | str = FilenameMode.SMART,
    ) -> float:
        """Score two file names under the given mode.

        Args:
            name_a: First file name.
            name_b: Second file name.
            mode: Filename comparison mode.

        Returns:
            Similarity in [0, 1].

        Raises:
            ValueError: If ``mode`` is not a known filename mode.
        """
        return self.score_profiles(self.profile(name_a), self.profile(name_b), mode)

    def score_profiles(
        self,
        profile_a: FilenameProfile,
        profile_b: FilenameProfile,
        mode: FilenameMode | str = FilenameMode.SMART,
    ) -> float:
        """Score two precomputed profiles under the given mode.

        Groupers compare every pair of a batch, so they build each profile
        once and call this instead of ``similarity``.
        """
        mode = FilenameMode(mode)

        if mode is FilenameMode.EXACT:
            return FilenameScores.EXACT if profile_a.original == profile_b.original else 0.0

        same_extension = profile_a.extension == profile_b.extension

        if profile_a.raw_base_name == profile_b.raw_base_name:
            return FilenameScores.EXACT if same_extension else FilenameScores.SAME_BASE_OTHER_EXTENSION

        if mode is FilenameMode.EXACT_BASE:
            return 0.0

        if self._normalized_match(profile_a, profile_b):
            return (
                FilenameScores.NORMALIZED_SAME_EXTENSION
                if same_extension
                else FilenameScores.NORMALIZED_OTHER_EXTENSION
            )

        if mode is FilenameMode.SMART:
            return 0.0

        return self._fuzzy_similarity(profile_a.raw_base_name, profile_b.raw_base_name, same_extension)

    def _normalized_match(self, profile_a: FilenameProfile, profile_b: FilenameProfile) -> bool:
        """Equal normalized base names, or one raw base name reduces to the other."""
        if profile_a.normalized_base_name and profile_a.normalized_base_name == profile_b.normalized_base_name:
            return True
        if not profile_a.raw_base_name or not profile_b.raw_base_name:
            return False
        # A profile's normalized base name is its raw base name after stripping
        if len(profile_a.raw_base_name) > len(profile_b.raw_base_name):
            longer, shorter = profile_a, profile_b
        else:
            longer, shorter = profile_b, profile_a
        return longer.normalized_base_name == shorter.raw_base_name

    def _fuzzy_similarity(self, base_a: str, base_b: str, same_extension: bool) -> float:
        """Levenshtein ratio of raw base names with the extension boost."""
        if not base_a or not base_b:
            return 0.0
        score = Levenshtein.normalized_similarity(base_a, base_b)
        if same_extension and score > FilenameScores.FUZZY_BOOST_FLOOR:
            return min(FilenameScores.EXACT, score + FilenameScores.FUZZY_EXTENSION_BOOST)
        return score

    def compare_all_modes(self, name_a: str, name_b: str) -> dict[str, float]:
        """Score a name pair under every filename mode.

        Debug helper for explaining why two names did or did not group.

        Example:
            >>> FilenameNormalizer().compare_all_modes("a.txt", "A.txt")["exact-base"]
            1.0
        """
        scores = {mode.value: self.similarity(name_a, name_b, mode) for mode in FilenameMode}
        logger.debug("Filename comparison %r vs %r: %s", name_a, name_b, scores)
        return scores


__all__ = ["FilenameNormalizer", "FilenameProfile", "PatternKind"]
