"""Unit tests for SimilarityMatcher."""

from __future__ import annotations

import random
from unittest.mock import Mock

import pytest

from twinscan.core.cancellation import CancellationToken
from twinscan.core.file_grouper.matchers import SimilarityMatcher
from twinscan.core.file_grouper.models import GroupKind
from twinscan.core.models import SimilaritySignature
from twinscan.core.signature import SignatureBuilder
from twinscan.shared.errors import OperationCancelledError


@pytest.fixture
def builder() -> SignatureBuilder:
    return SignatureBuilder()


def _entries(builder, records):
    return [(record, builder.signature(record.read_bytes())) for record in records]


class TestSimilarityMatcherInit:
    """Test cases for SimilarityMatcher initialization."""

    @pytest.mark.parametrize("threshold", [0.0, 1.01])
    def test_invalid_threshold(self, threshold: float) -> None:
        with pytest.raises(ValueError, match="Threshold"):
            SimilarityMatcher(threshold=threshold)

    def test_invalid_row_batch(self) -> None:
        with pytest.raises(ValueError, match="row_batch"):
            SimilarityMatcher(row_batch=0)


class TestSimilarityMatcherMatch:
    """Test cases for pairwise clustering."""

    def test_near_duplicates_group(self, builder, make_record, base_bytes, near_bytes, other_bytes) -> None:
        """Heavily overlapping files group; an unrelated file does not."""
        a = make_record("a.bin", base_bytes)
        b = make_record("b.bin", near_bytes)
        c = make_record("c.bin", other_bytes)

        groups = SimilarityMatcher(threshold=0.8).match(_entries(builder, [a, b, c]))

        assert len(groups) == 1
        group = groups[0]
        assert group.kind is GroupKind.SIMILARITY
        assert group.paths == [a.path, b.path]
        assert 0.8 <= group.avg_similarity < 1.0

    def test_threshold_one_behaves_as_exact(self, builder, make_record, base_bytes, near_bytes) -> None:
        """At 1.0 only byte-identical files match."""
        records = [
            make_record("a.bin", base_bytes),
            make_record("b.bin", near_bytes),
            make_record("c.bin", base_bytes),
        ]

        groups = SimilarityMatcher(threshold=1.0).match(_entries(builder, records))

        assert [g.paths for g in groups] == [["/test/a.bin", "/test/c.bin"]]
        assert groups[0].avg_similarity == 1.0

    def test_low_threshold_unrelated_files(self, builder, make_record) -> None:
        """Substantially different files do not group even at 0.3."""
        records = [make_record(f"r{i}.bin", random.Random(i).randbytes(2000)) for i in range(4)]

        assert SimilarityMatcher(threshold=0.3).match(_entries(builder, records)) == []

    def test_known_overlap_fraction(self, builder, make_record, base_bytes, other_bytes) -> None:
        """Files sharing about a third of their shingles group at 0.15 but not at 0.55."""
        mixed = base_bytes[:2000] + other_bytes[:2000]
        entries = _entries(builder, [make_record("a.bin", base_bytes), make_record("m.bin", mixed)])

        assert len(SimilarityMatcher(threshold=0.15).match(entries)) == 1
        assert SimilarityMatcher(threshold=0.55).match(entries) == []

    def test_overlapping_files_form_one_component(self, builder, make_record, base_bytes) -> None:
        """Successive edits of one file end up in a single group."""
        step = random.Random(3)
        first = base_bytes
        second = first[:3900] + step.randbytes(100)
        third = second[100:] + step.randbytes(100)
        records = [
            make_record("1.bin", first),
            make_record("2.bin", second),
            make_record("3.bin", third),
        ]

        groups = SimilarityMatcher(threshold=0.7).match(_entries(builder, records))

        assert [g.paths for g in groups] == [["/test/1.bin", "/test/2.bin", "/test/3.bin"]]

    def test_empty_files_never_match(self, builder, make_record) -> None:
        records = [make_record("e1.txt", b""), make_record("e2.txt", b"")]

        assert SimilarityMatcher(threshold=0.1).match(_entries(builder, records)) == []

    def test_incompatible_signatures(self, make_record, base_bytes) -> None:
        a = make_record("a.bin", base_bytes)
        b = make_record("b.bin", base_bytes)
        entries = [
            (a, SignatureBuilder(shingle_size=4).signature(base_bytes)),
            (b, SignatureBuilder(shingle_size=8).signature(base_bytes)),
        ]

        with pytest.raises(ValueError, match="same num_perm"):
            SimilarityMatcher().match(entries)

    def test_handcrafted_signatures(self, make_record) -> None:
        """Similarity is the fraction of equal positions."""
        a, b = make_record("a.bin", b"a"), make_record("b.bin", b"b")
        entries = [
            (a, SimilaritySignature(values=(1, 2, 3, 4), num_perm=4, shingle_size=4)),
            (b, SimilaritySignature(values=(1, 2, 3, 9), num_perm=4, shingle_size=4)),
        ]

        assert len(SimilarityMatcher(threshold=0.75).match(entries)) == 1
        assert SimilarityMatcher(threshold=0.8).match(entries) == []

    def test_progress_per_row_batch(self, builder, make_record) -> None:
        records = [make_record(f"f{i}.bin", bytes([i]) * 10) for i in range(10)]
        on_progress = Mock()

        SimilarityMatcher(row_batch=4).match(_entries(builder, records), on_progress=on_progress)

        # Rows 0-3, 4-7 and 8
        assert on_progress.call_count == 3
        assert on_progress.call_args_list[-1].args[:2] == (45, 45)

    def test_cancellation(self, builder, make_record, base_bytes) -> None:
        token = CancellationToken()
        token.cancel()
        records = [make_record("a.bin", base_bytes), make_record("b.bin", base_bytes)]

        with pytest.raises(OperationCancelledError):
            SimilarityMatcher().match(_entries(builder, records), cancel_token=token)

    def test_cancellation_between_row_batches(self, make_record) -> None:
        """Cancelling after the first row batch stops further comparisons."""
        entries = [
            (
                make_record(f"f{i}.bin"),
                SimilaritySignature(values=tuple((i * 31 + p) % 997 for p in range(16)), num_perm=16, shingle_size=4),
            )
            for i in range(200)
        ]
        token = CancellationToken()
        reports: list[tuple[int, int]] = []

        def on_progress(completed: int, total: int, _name: str | None) -> None:
            reports.append((completed, total))
            token.cancel()

        with pytest.raises(OperationCancelledError) as exc_info:
            SimilarityMatcher(row_batch=8).match(entries, on_progress=on_progress, cancel_token=token)

        assert len(reports) == 1
        compared, total = reports[0]
        assert compared < total
        assert exc_info.value.context.additional_data == {"completed": compared, "total": total}
