"""Unit tests for DuplicateResolver."""

from __future__ import annotations

import pytest

from twinscan.core.file_grouper.duplicate_resolver import (
    DuplicateResolver,
    KeepPolicy,
    ResolutionConfig,
    select_keep,
)
from twinscan.core.file_grouper.models import Group, GroupKind


@pytest.fixture
def copies(make_record):
    """An original and two decorated copies with distinct sizes and times."""
    return [
        make_record("report - Copy.txt", b"x" * 30, last_modified=300.0),
        make_record("report.txt", b"x" * 10, last_modified=200.0),
        make_record("report (2).txt", b"x" * 20, last_modified=100.0),
    ]


class TestDuplicateResolver:
    """Test cases for keep suggestions."""

    def test_keep_original_prefers_undecorated(self, copies) -> None:
        assert DuplicateResolver().select_keep(copies).name == "report.txt"

    def test_keep_original_tie_breaks_by_age(self, make_record) -> None:
        files = [
            make_record("a.txt", b"x", path="/new/a.txt", last_modified=20.0),
            make_record("a.txt", b"x", path="/old/a.txt", last_modified=10.0),
        ]

        assert DuplicateResolver().select_keep(files).path == "/old/a.txt"

    @pytest.mark.parametrize(
        ("policy", "expected"),
        [
            (KeepPolicy.KEEP_OLDEST, "report (2).txt"),
            (KeepPolicy.KEEP_NEWEST, "report - Copy.txt"),
            (KeepPolicy.KEEP_LARGEST, "report - Copy.txt"),
            (KeepPolicy.KEEP_FIRST, "report - Copy.txt"),
        ],
    )
    def test_policies(self, copies, policy: KeepPolicy, expected: str) -> None:
        resolver = DuplicateResolver(ResolutionConfig(policy=policy))
        assert resolver.select_keep(copies).name == expected

    def test_ties_fall_back_to_group_order(self, make_record) -> None:
        files = [make_record("b.txt", b"xx"), make_record("a.txt", b"yy")]
        resolver = DuplicateResolver(ResolutionConfig(policy=KeepPolicy.KEEP_LARGEST))

        assert resolver.select_keep(files).name == "b.txt"

    def test_single_file(self, make_record) -> None:
        record = make_record("only.txt", b"x")
        assert DuplicateResolver().select_keep([record]) is record

    def test_empty_list(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            DuplicateResolver().select_keep([])

    def test_annotate_sets_suggested_keep(self, copies) -> None:
        group = Group(kind=GroupKind.FILENAME, files=copies)

        DuplicateResolver().annotate([group])

        assert group.suggested_keep == "/test/report.txt"

    def test_module_level_select_keep(self, copies) -> None:
        chosen = select_keep(copies, ResolutionConfig(policy=KeepPolicy.KEEP_OLDEST))
        assert chosen.name == "report (2).txt"
