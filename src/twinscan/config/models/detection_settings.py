"""Detection configuration models.

This module contains configuration models for the three grouping
strategies and for the multi-criteria merge.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from twinscan.core.models import Criterion, FilenameMode
from twinscan.shared.constants import (
    DEFAULT_ENABLED_CRITERIA,
    DEFAULT_PRIORITY_ORDER,
    DEFAULT_WEIGHTS,
    FilenameScores,
    Similarity,
)

_KNOWN_CRITERIA = frozenset(c.value for c in Criterion)


class SimilaritySettings(BaseModel):
    """Content-similarity configuration.

    Attributes:
        threshold: Minimum estimated Jaccard similarity, in (0, 1].
        num_perm: Hash functions per MinHash signature (N).
        shingle_size: Bytes per shingle (k).
        seed: Permutation seed. Must stay fixed across runs for signatures
            to be comparable.

    Example:
        >>> SimilaritySettings(threshold=0.9).num_perm
        128
    """

    threshold: float = Field(
        default=Similarity.DEFAULT_THRESHOLD,
        gt=0.0,
        le=1.0,
        description="Minimum estimated similarity for two files to be grouped",
    )
    num_perm: int = Field(
        default=Similarity.NUM_PERM,
        ge=1,
        le=4096,
        description="Number of hash functions per signature",
    )
    shingle_size: int = Field(
        default=Similarity.SHINGLE_SIZE,
        ge=1,
        le=64,
        description="Bytes per shingle",
    )
    seed: int = Field(
        default=Similarity.SEED,
        ge=0,
        description="Seed of the MinHash permutation set",
    )


class FilenameSettings(BaseModel):
    """Filename grouping configuration."""

    mode: FilenameMode = Field(
        default=FilenameMode.SMART,
        description="Filename comparison mode: exact, exact-base, smart or fuzzy",
    )
    threshold: float = Field(
        default=FilenameScores.DEFAULT_THRESHOLD,
        gt=0.0,
        le=1.0,
        description="Minimum filename score for two files to be grouped",
    )


class MultiCriteriaSettings(BaseModel):
    """Multi-criteria merge configuration.

    Attributes:
        criteria: Enabled flag per criterion.
        weights: Confidence weight per criterion; need not sum to 1.
        priority_order: Criteria, highest priority first.
    """

    criteria: dict[str, bool] = Field(
        default_factory=lambda: dict(DEFAULT_ENABLED_CRITERIA),
        description="Which detection strategies take part in the merge",
    )
    weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_WEIGHTS),
        description="Per-criterion confidence weights",
    )
    priority_order: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PRIORITY_ORDER),
        description="Criteria ranked from highest to lowest priority",
    )

    @field_validator("criteria", "weights")
    @classmethod
    def validate_criterion_keys(cls, v: dict[str, object]) -> dict[str, object]:
        """Reject unknown criterion names."""
        unknown = sorted(set(v) - _KNOWN_CRITERIA)
        if unknown:
            msg = f"Unknown criteria: {unknown}. Known: {sorted(_KNOWN_CRITERIA)}"
            raise ValueError(msg)
        return v

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        """Reject negative weights and a zero total."""
        negative = sorted(name for name, weight in v.items() if weight < 0)
        if negative:
            msg = f"Weights must be non-negative: {negative}"
            raise ValueError(msg)
        if sum(v.values()) <= 0:
            msg = f"Weights must sum to a positive total, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("priority_order")
    @classmethod
    def validate_priority_order(cls, v: list[str]) -> list[str]:
        """Require a non-empty ranking of distinct, known criteria."""
        if not v:
            msg = "priority_order must name at least one criterion"
            raise ValueError(msg)
        if len(set(v)) != len(v):
            msg = f"priority_order contains duplicates: {v}"
            raise ValueError(msg)
        unknown = sorted(set(v) - _KNOWN_CRITERIA)
        if unknown:
            msg = f"Unknown criteria in priority_order: {unknown}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_enabled_are_ranked(self) -> MultiCriteriaSettings:
        """Every enabled criterion must appear in priority_order."""
        enabled = self.enabled_criteria
        if not enabled:
            msg = "At least one criterion must be enabled"
            raise ValueError(msg)
        missing = [c for c in enabled if c not in self.priority_order]
        if missing:
            msg = f"Enabled criteria missing from priority_order: {missing}"
            raise ValueError(msg)
        return self

    @property
    def enabled_criteria(self) -> list[str]:
        """Enabled criteria in canonical order."""
        return [c.value for c in Criterion if self.criteria.get(c.value, False)]


__all__ = ["FilenameSettings", "MultiCriteriaSettings", "SimilaritySettings"]
