"""Filename decoration pattern constants.

This module contains the regex patterns used to strip naming-convention
decorations from file base names, following the One Source of Truth principle.
Patterns are applied in declaration order, each at most once, and all are
anchored to the end of the base name.
"""

from __future__ import annotations

from typing import Final

# Trailing copy markers: "report copy", "report - Copy (2)"
COPY_PATTERN: Final[str] = r"\s*-?\s*(copy)(\s*\(\d+\))?$"

# Trailing numeric counters in parentheses: "photo (1)"
NUMBER_PATTERN: Final[str] = r"\s*-?\s*\(\d+\)$"

# Trailing duplicate markers: "notes_dup", "notes-duplicate 3"
DUPLICATE_PATTERN: Final[str] = r"\s*[_-]?(dup|duplicate)(\s*\d+)?$"

# Trailing date/time stamps: "log_2024-01-31", "scan 2024_01_31 10-15-00"
TIMESTAMP_PATTERN: Final[str] = r"\s*[_-]?\d{4}[-_]\d{2}[-_]\d{2}(\s*[_-]?\d{2}[-_:]\d{2}([-_:]\d{2})?)?$"

# Trailing version suffixes: "draft_v2", "spec_3.1"
VERSION_PATTERN: Final[str] = r"\s*[_-]?v?\d+(\.\d+)*$"

# Trailing bracketed tags: "song [remastered]"
BRACKETS_PATTERN: Final[str] = r"\s*\[.*?\]$"

# Trailing parenthetical annotations that are not extension-like: "memo (final)"
PARENTHESES_PATTERN: Final[str] = r"\s*\((?!.*\.\w+\)$).*?\)$"

# Security: maximum name length fed to the regex engine
MAX_FILENAME_LENGTH: Final[int] = 1024


__all__ = [
    "BRACKETS_PATTERN",
    "COPY_PATTERN",
    "DUPLICATE_PATTERN",
    "MAX_FILENAME_LENGTH",
    "NUMBER_PATTERN",
    "PARENTHESES_PATTERN",
    "TIMESTAMP_PATTERN",
    "VERSION_PATTERN",
]
