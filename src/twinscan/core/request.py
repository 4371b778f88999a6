"""Detection request parameters and their validation.

A DetectionRequest carries everything one detection run needs besides the
files themselves. ``validate()`` rejects out-of-domain parameters before
any file is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from twinscan.core.file_grouper.duplicate_resolver import KeepPolicy
from twinscan.core.models import ArtifactKind, Criterion, FilenameMode, ScanMode
from twinscan.shared.constants import (
    DEFAULT_ENABLED_CRITERIA,
    DEFAULT_PRIORITY_ORDER,
    DEFAULT_WEIGHTS,
    FilenameScores,
    Similarity,
)
from twinscan.shared.errors import ErrorCode, create_invalid_parameters_error
from twinscan.shared.logging import log_validation_error

if TYPE_CHECKING:
    from twinscan.config.models.settings import Settings

logger = logging.getLogger(__name__)

_KNOWN_CRITERIA = tuple(c.value for c in Criterion)


@dataclass
class DetectionRequest:
    """Parameters of one detection run.

    Only the parameters relevant to ``mode`` are used; the rest keep their
    defaults and are still validated.

    Attributes:
        mode: exact, filename, similarity or multi-criteria.
        similarity_threshold: Minimum estimated similarity, in (0, 1].
        filename_mode: exact, exact-base, smart or fuzzy.
        filename_threshold: Minimum filename score, in (0, 1].
        criteria: Enabled flag per criterion (multi-criteria).
        weights: Confidence weight per criterion (multi-criteria).
        priority_order: Criteria, highest priority first (multi-criteria).
        num_perm: MinHash signature length (N).
        shingle_size: Bytes per shingle (k).
        seed: MinHash permutation seed.
        keep_policy: Policy for each group's keep suggestion.

    Example:
        >>> request = DetectionRequest(mode="filename", filename_mode="fuzzy")
        >>> request.validate()
        >>> request.scan_mode
        <ScanMode.FILENAME: 'filename'>
    """

    mode: ScanMode | str
    similarity_threshold: float = Similarity.DEFAULT_THRESHOLD
    filename_mode: FilenameMode | str = FilenameMode.SMART
    filename_threshold: float = FilenameScores.DEFAULT_THRESHOLD
    criteria: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_ENABLED_CRITERIA))
    weights: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    priority_order: list[str] = field(default_factory=lambda: list(DEFAULT_PRIORITY_ORDER))
    num_perm: int = Similarity.NUM_PERM
    shingle_size: int = Similarity.SHINGLE_SIZE
    seed: int = Similarity.SEED
    keep_policy: KeepPolicy | str = KeepPolicy.KEEP_ORIGINAL

    @classmethod
    def from_settings(cls, settings: Settings, mode: ScanMode | str) -> DetectionRequest:
        """Build a request for ``mode`` from loaded settings."""
        return cls(
            mode=mode,
            similarity_threshold=settings.similarity.threshold,
            filename_mode=settings.filename.mode,
            filename_threshold=settings.filename.threshold,
            criteria=dict(settings.multi_criteria.criteria),
            weights=dict(settings.multi_criteria.weights),
            priority_order=list(settings.multi_criteria.priority_order),
            num_perm=settings.similarity.num_perm,
            shingle_size=settings.similarity.shingle_size,
            seed=settings.similarity.seed,
        )

    @property
    def scan_mode(self) -> ScanMode:
        return ScanMode(self.mode)

    @property
    def filename_mode_value(self) -> FilenameMode:
        return FilenameMode(self.filename_mode)

    @property
    def enabled_criteria(self) -> list[str]:
        """Criteria this run will execute, in canonical order."""
        mode = self.scan_mode
        if mode is ScanMode.MULTI_CRITERIA:
            return [c for c in _KNOWN_CRITERIA if self.criteria.get(c, False)]
        return [mode.value]

    @property
    def needed_artifacts(self) -> frozenset[ArtifactKind]:
        """Per-file artifacts the enabled criteria depend on."""
        needed: set[ArtifactKind] = set()
        enabled = self.enabled_criteria
        if Criterion.EXACT.value in enabled:
            needed.add(ArtifactKind.DIGEST)
        if Criterion.SIMILARITY.value in enabled:
            needed.add(ArtifactKind.SIGNATURE)
        return frozenset(needed)

    def thresholds_used(self) -> dict[str, float | str]:
        """Thresholds that shaped the run's groups, for the result."""
        enabled = self.enabled_criteria
        used: dict[str, float | str] = {}
        if Criterion.SIMILARITY.value in enabled:
            used["similarity"] = self.similarity_threshold
        if Criterion.FILENAME.value in enabled:
            used["filename"] = self.filename_threshold
            used["filename_mode"] = self.filename_mode_value.value
        return used

    def validate(self) -> None:
        """Reject out-of-domain parameters.

        Raises:
            InvalidParametersError: On an unknown mode, a threshold outside
                (0, 1], an unknown filename mode or keep policy, a
                non-positive signature parameter, or (multi-criteria) an
                empty, repeated or unknown priority order, unknown or
                negative weights, a zero weight total, no enabled
                criteria, or an enabled criterion missing from the
                priority order.
        """
        try:
            mode = ScanMode(self.mode)
        except ValueError:
            self._reject(
                f"Unknown scan mode: {self.mode!r}. Expected one of {[m.value for m in ScanMode]}",
                "mode",
                self.mode,
                ErrorCode.UNKNOWN_SCAN_MODE,
            )

        for name in ("similarity_threshold", "filename_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 < value <= 1.0:
                self._reject(f"{name} must be in (0, 1], got {value!r}", name, value, ErrorCode.INVALID_THRESHOLD)

        try:
            FilenameMode(self.filename_mode)
        except ValueError:
            self._reject(
                f"Unknown filename mode: {self.filename_mode!r}. "
                f"Expected one of {[m.value for m in FilenameMode]}",
                "filename_mode",
                self.filename_mode,
            )

        try:
            KeepPolicy(self.keep_policy)
        except ValueError:
            self._reject(f"Unknown keep policy: {self.keep_policy!r}", "keep_policy", self.keep_policy)

        for name in ("num_perm", "shingle_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                self._reject(f"{name} must be a positive integer, got {value!r}", name, value)

        if mode is ScanMode.MULTI_CRITERIA:
            self._validate_multi_criteria()

    def _validate_multi_criteria(self) -> None:
        order = list(self.priority_order)
        if not order:
            self._reject(
                "priority_order must name at least one criterion",
                "priority_order",
                order,
                ErrorCode.INVALID_PRIORITY_ORDER,
            )
        unknown = [c for c in order if c not in _KNOWN_CRITERIA]
        if unknown:
            self._reject(
                f"Unknown criteria in priority_order: {unknown}",
                "priority_order",
                order,
                ErrorCode.INVALID_PRIORITY_ORDER,
            )
        if len(set(order)) != len(order):
            self._reject(
                f"priority_order contains duplicates: {order}",
                "priority_order",
                order,
                ErrorCode.INVALID_PRIORITY_ORDER,
            )

        unknown_flags = sorted(set(self.criteria) - set(_KNOWN_CRITERIA))
        if unknown_flags:
            self._reject(f"Unknown criteria: {unknown_flags}", "criteria", self.criteria)

        for name, weight in self.weights.items():
            if name not in _KNOWN_CRITERIA:
                self._reject(f"Unknown criterion in weights: {name!r}", "weights", self.weights)
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
                self._reject(f"Weight for {name!r} must be non-negative, got {weight!r}", "weights", self.weights)
        if sum(self.weights.values()) <= 0:
            self._reject(f"Weights must sum to a positive total, got {self.weights}", "weights", self.weights)

        enabled = self.enabled_criteria
        if not enabled:
            self._reject("At least one criterion must be enabled", "criteria", self.criteria)
        missing = [c for c in enabled if c not in order]
        if missing:
            self._reject(
                f"Enabled criteria missing from priority_order: {missing}",
                "priority_order",
                order,
                ErrorCode.INVALID_PRIORITY_ORDER,
            )

    @staticmethod
    def _reject(
        message: str,
        field_name: str,
        value: object,
        code: ErrorCode = ErrorCode.INVALID_PARAMETERS,
    ) -> None:
        log_validation_error(logger, field_name, value, message)
        raise create_invalid_parameters_error(message, field_name, value, code)


__all__ = ["DetectionRequest"]
