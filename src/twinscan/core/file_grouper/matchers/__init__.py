"""Matchers for duplicate grouping.

This package provides the exact, filename and similarity grouping
strategies. All matchers implement the BaseMatcher protocol.
"""

from __future__ import annotations

from twinscan.core.file_grouper.matchers.base import BaseMatcher
from twinscan.core.file_grouper.matchers.exact_matcher import ExactMatcher
from twinscan.core.file_grouper.matchers.filename_matcher import FilenameMatcher
from twinscan.core.file_grouper.matchers.similarity_matcher import SimilarityMatcher

__all__ = ["BaseMatcher", "ExactMatcher", "FilenameMatcher", "SimilarityMatcher"]
