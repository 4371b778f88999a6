"""Unit tests for WorkScheduler."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from twinscan.core.cancellation import CancellationToken
from twinscan.core.hasher import ContentHasher
from twinscan.core.models import ArtifactKind
from twinscan.core.scheduler import WorkScheduler
from twinscan.core.signature import SignatureBuilder
from twinscan.shared.errors import ErrorCode, InfrastructureError, OperationCancelledError


@pytest.fixture
def scheduler():
    with WorkScheduler(hash_workers=2, similarity_workers=2, progress_interval=3) as pool:
        yield pool


class TestWorkSchedulerInit:
    """Test cases for pool sizing."""

    def test_explicit_sizes(self) -> None:
        scheduler = WorkScheduler(hash_workers=3, similarity_workers=1)

        assert scheduler.hash_workers == 3
        assert scheduler.similarity_workers == 1
        assert not scheduler.is_running()

    def test_default_sizes(self, mocker) -> None:
        mocker.patch("twinscan.core.performance.cpu_count", return_value=8)

        scheduler = WorkScheduler()

        assert scheduler.hash_workers == 7
        assert scheduler.similarity_workers == 4

    @pytest.mark.parametrize(
        "kwargs",
        [{"hash_workers": 0}, {"similarity_workers": 0}, {"progress_interval": 0}],
    )
    def test_invalid_sizes(self, kwargs) -> None:
        with pytest.raises(ValueError):
            WorkScheduler(**kwargs)

    def test_start_and_shutdown(self) -> None:
        scheduler = WorkScheduler(hash_workers=2)
        scheduler.start()
        assert scheduler.is_running()

        scheduler.shutdown()
        assert not scheduler.is_running()


class TestComputeArtifacts:
    """Test cases for artifact computation."""

    def test_digests_in_input_order(self, scheduler, make_record) -> None:
        records = [make_record(f"f{i}.txt", f"content {i}".encode()) for i in range(7)]

        result = scheduler.compute_artifacts(records, {ArtifactKind.DIGEST})

        hasher = ContentHasher()
        assert [a.record for a in result.artifacts] == records
        assert [d for _, d in result.digests()] == [hasher.digest(r.read_bytes()) for r in records]
        assert result.signatures() == []
        assert result.failures == []

    def test_digest_and_signature_from_one_read(self, scheduler, make_record, base_bytes) -> None:
        content = Mock()
        content.read_bytes.return_value = base_bytes
        record = make_record("a.bin", base_bytes).model_copy(update={"content": content})

        result = scheduler.compute_artifacts(
            [record],
            {ArtifactKind.DIGEST, ArtifactKind.SIGNATURE},
            signature_builder=SignatureBuilder(num_perm=32),
        )

        artifact = result.artifacts[0]
        assert artifact.digest == ContentHasher().digest(base_bytes)
        assert artifact.signature == SignatureBuilder(num_perm=32).signature(base_bytes)
        content.read_bytes.assert_called_once_with()

    def test_unreadable_file_is_recorded(self, scheduler, make_record, unreadable_record) -> None:
        records = [make_record("a.txt", b"a"), unreadable_record, make_record("b.txt", b"b")]

        result = scheduler.compute_artifacts(records, {ArtifactKind.DIGEST})

        assert [a.record.name for a in result.artifacts] == ["a.txt", "b.txt"]
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.path == unreadable_record.path
        assert failure.error_code == ErrorCode.PERMISSION_DENIED.value
        assert result.failed_paths == {unreadable_record.path}

    def test_progress_every_interval_and_at_end(self, scheduler, make_record) -> None:
        records = [make_record(f"f{i}.txt", b"x") for i in range(7)]
        on_progress = Mock()

        scheduler.compute_artifacts(records, {ArtifactKind.DIGEST}, on_progress=on_progress)

        assert [c.args[:2] for c in on_progress.call_args_list] == [(3, 7), (6, 7), (7, 7)]

    def test_cancellation_between_chunks(self, scheduler, make_record) -> None:
        records = [make_record(f"f{i}.txt", b"x") for i in range(10)]
        token = CancellationToken()

        def cancel_after_first_report(completed, total, name):
            token.cancel()

        with pytest.raises(OperationCancelledError):
            scheduler.compute_artifacts(
                records,
                {ArtifactKind.DIGEST},
                on_progress=cancel_after_first_report,
                cancel_token=token,
            )

    def test_nothing_needed(self, scheduler, make_record) -> None:
        result = scheduler.compute_artifacts([make_record("a.txt", b"a")], set())
        assert result.artifacts == []

    def test_empty_batch(self, scheduler) -> None:
        result = scheduler.compute_artifacts([], {ArtifactKind.DIGEST})
        assert result.artifacts == [] and result.failures == []

    def test_rejected_submission_is_worker_pool_error(self, make_record) -> None:
        """A pool that refuses work surfaces as WORKER_POOL_ERROR."""
        scheduler = WorkScheduler(hash_workers=2, similarity_workers=1)
        refusing = Mock(submit=Mock(side_effect=RuntimeError("cannot schedule new futures after shutdown")))
        scheduler._hash_executor = refusing
        scheduler._similarity_executor = Mock()

        with pytest.raises(InfrastructureError) as exc_info:
            scheduler.compute_artifacts([make_record("a.txt", b"a")], {ArtifactKind.DIGEST})

        assert exc_info.value.code is ErrorCode.WORKER_POOL_ERROR
        assert isinstance(exc_info.value.original_error, RuntimeError)
