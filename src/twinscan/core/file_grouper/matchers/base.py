"""Base protocol for duplicate matching strategies.

This module defines the BaseMatcher Protocol that every grouper implements.
Each matcher consumes its own entry type (digest pairs, signature pairs or
bare records) and returns groups of at least two files.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

from twinscan.core.file_grouper.models import Group

EntryT_contra = TypeVar("EntryT_contra", contravariant=True)


@runtime_checkable
class BaseMatcher(Protocol[EntryT_contra]):
    """Protocol for duplicate matching strategies.

    Attributes:
        component_name: Criterion this matcher implements ("exact",
            "filename" or "similarity"). Used for logging and merge evidence.

    Example:
        >>> class SizeMatcher:
        ...     component_name = "size"
        ...
        ...     def match(self, entries):
        ...         return []
        ...
        >>> isinstance(SizeMatcher(), BaseMatcher)
        True
    """

    component_name: str

    def match(self, entries: Sequence[EntryT_contra]) -> list[Group]:
        """Group entries by this matcher's criterion.

        Implementation Notes:
            - Return an empty list if no groups can be formed
            - Each file appears in at most one group
            - Groups with fewer than two files are discarded
            - Output order depends only on input order, never on timing
        """


__all__ = ["BaseMatcher"]
