"""Tests for the detection engine."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from twinscan.core.cancellation import CancellationToken
from twinscan.core.engine import DetectionEngine, ProgressTracker, detect
from twinscan.core.file_grouper.models import GroupKind
from twinscan.core.models import FileRecord, ScanMode
from twinscan.core.performance import PerformanceAdvisor, PerformanceWarning, WarningLevel
from twinscan.core.request import DetectionRequest
from twinscan.core.results import OutcomeStatus, Phase, ProgressEvent
from twinscan.core.scheduler import WorkScheduler
from twinscan.shared.errors import ErrorCode, InvalidParametersError


@pytest.fixture
def batch(make_record, base_bytes: bytes, near_bytes: bytes, other_bytes: bytes) -> list[FileRecord]:
    """Two byte-identical photos, a near-duplicate, a renamed copy and an unrelated file."""
    return [
        make_record("photo.jpg", base_bytes, path="/a/photo.jpg", last_modified=100.0),
        make_record("photo.jpg", base_bytes, path="/b/photo.jpg", last_modified=200.0),
        make_record("photo (1).jpg", near_bytes, path="/a/photo (1).jpg", last_modified=300.0),
        make_record("invoice.pdf", other_bytes, path="/a/invoice.pdf"),
    ]


class TestDetectionEngineModes:
    """Test cases for each scan mode."""

    def test_exact_mode(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        outcome = engine.detect(batch, DetectionRequest(mode="exact"))

        assert outcome.status is OutcomeStatus.COMPLETED
        result = outcome.result
        assert result.scan_mode is ScanMode.EXACT
        assert result.total_files == 4
        assert [g.paths for g in result.groups] == [["/a/photo.jpg", "/b/photo.jpg"]]
        assert result.groups[0].kind is GroupKind.EXACT
        assert result.groups[0].suggested_keep == "/a/photo.jpg"
        assert result.thresholds_used == {}
        assert result.summary.group_count == 1
        assert result.summary.wasted_space == len(batch[0].read_bytes())

    def test_filename_mode(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        request = DetectionRequest(mode="filename", filename_mode="smart", filename_threshold=0.8)

        result = engine.detect(batch, request).result

        assert len(result.groups) == 1
        assert sorted(result.groups[0].paths) == ["/a/photo (1).jpg", "/a/photo.jpg", "/b/photo.jpg"]
        assert result.thresholds_used == {"filename": 0.8, "filename_mode": "smart"}

    def test_similarity_mode(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        result = engine.detect(batch, DetectionRequest(mode="similarity", similarity_threshold=0.8)).result

        assert [g.paths for g in result.groups] == [["/a/photo.jpg", "/b/photo.jpg", "/a/photo (1).jpg"]]
        assert result.groups[0].kind is GroupKind.SIMILARITY
        assert result.thresholds_used == {"similarity": 0.8}

    def test_multi_criteria_mode(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        """Exact leads; the filename match corroborates it."""
        request = DetectionRequest(
            mode="multi-criteria",
            criteria={"exact": True, "filename": True, "similarity": False},
            priority_order=["exact", "filename", "similarity"],
        )

        result = engine.detect(batch, request).result

        assert len(result.groups) == 1
        group = result.groups[0]
        assert group.kind is GroupKind.MULTI_CRITERIA
        assert group.paths == ["/a/photo.jpg", "/b/photo.jpg"]
        assert group.evidence.primary_criterion == "exact"
        assert group.evidence.criteria_used == ["exact", "filename"]
        assert 0.0 < group.confidence <= 1.0

    def test_empty_batch(self, engine: DetectionEngine) -> None:
        outcome = engine.detect([], DetectionRequest(mode="similarity"))

        assert outcome.completed
        assert outcome.result.groups == []
        assert outcome.result.total_files == 0


class TestDetectionEngineBehaviour:
    """Test cases for cross-cutting engine guarantees."""

    @pytest.mark.parametrize("mode", list(ScanMode))
    def test_idempotence(self, engine: DetectionEngine, batch: list[FileRecord], mode: ScanMode) -> None:
        """Two runs over the same batch give identical groups in identical order."""
        request = DetectionRequest(mode=mode)

        first = engine.detect(batch, request).result
        second = engine.detect(batch, request).result

        assert [g.to_dict() for g in first.groups] == [g.to_dict() for g in second.groups]

    def test_unreadable_file_is_reported_not_fatal(
        self,
        engine: DetectionEngine,
        batch: list[FileRecord],
        unreadable_record: FileRecord,
    ) -> None:
        outcome = engine.detect([*batch, unreadable_record], DetectionRequest(mode="exact"))

        assert outcome.status is OutcomeStatus.COMPLETED
        assert [f.path for f in outcome.result.failures] == [unreadable_record.path]
        assert outcome.result.summary.failed_file_count == 1
        assert len(outcome.result.groups) == 1

    def test_unexpected_accessor_error_is_per_file(self, engine: DetectionEngine, make_record) -> None:
        """Any exception from a byte accessor becomes a failure entry."""
        broken = FileRecord(
            path="/test/c.txt",
            name="c.txt",
            content=Mock(read_bytes=Mock(side_effect=RuntimeError("archive member corrupt"))),
        )
        records = [make_record("a.txt", b"same"), make_record("b.txt", b"same"), broken]

        outcome = engine.detect(records, DetectionRequest(mode="exact"))

        assert outcome.status is OutcomeStatus.COMPLETED
        assert [g.paths for g in outcome.result.groups] == [["/test/a.txt", "/test/b.txt"]]
        assert [(f.path, f.error_code) for f in outcome.result.failures] == [("/test/c.txt", "FILE_READ_ERROR")]

    def test_unreadable_file_still_groups_by_name(self, engine: DetectionEngine, make_record, unreadable_record) -> None:
        twin = make_record("locked.bin", b"data", path="/other/locked.bin")

        result = engine.detect([twin, unreadable_record], DetectionRequest(mode="filename")).result

        assert len(result.groups) == 1
        assert result.failures == []

    def test_invalid_parameters_raise_before_work(self, batch: list[FileRecord]) -> None:
        scheduler = Mock(spec=WorkScheduler)
        engine = DetectionEngine(scheduler=scheduler)

        with pytest.raises(InvalidParametersError) as exc_info:
            engine.detect(batch, DetectionRequest(mode="similarity", similarity_threshold=1.5))

        assert exc_info.value.code is ErrorCode.INVALID_THRESHOLD
        scheduler.compute_artifacts.assert_not_called()

    def test_empty_priority_order_raises(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        with pytest.raises(InvalidParametersError):
            engine.detect(batch, DetectionRequest(mode="multi-criteria", priority_order=[]))

    def test_duplicate_paths_raise(self, engine: DetectionEngine, make_record) -> None:
        records = [make_record("a.txt", b"a", path="/x"), make_record("b.txt", b"b", path="/x")]

        with pytest.raises(InvalidParametersError, match="Duplicate path"):
            engine.detect(records, DetectionRequest(mode="exact"))

    def test_cancelled_before_start(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        token = CancellationToken()
        token.cancel()

        outcome = engine.detect(batch, DetectionRequest(mode="similarity"), cancel_token=token)

        assert outcome.status is OutcomeStatus.CANCELLED
        assert outcome.result is None
        assert outcome.error.code is ErrorCode.OPERATION_CANCELLED

    def test_cancelled_during_similarity_run(self, engine: DetectionEngine, make_record) -> None:
        """Cancelling mid-run stops work and reports a cancelled outcome."""
        records = [make_record(f"f{i}.bin", bytes([i % 256]) * 64) for i in range(200)]
        token = CancellationToken()
        seen: list[ProgressEvent] = []

        def on_progress(event: ProgressEvent) -> None:
            seen.append(event)
            if event.phase is Phase.SIGNATURES and event.completed > 0:
                token.cancel()

        outcome = engine.detect(records, DetectionRequest(mode="similarity"), on_progress=on_progress, cancel_token=token)

        assert outcome.status is OutcomeStatus.CANCELLED
        assert outcome.result is None
        assert all(event.phase is not Phase.SIMILARITY_GROUPING for event in seen)

    def test_cancelled_in_filename_grouping(self, engine: DetectionEngine, make_record) -> None:
        records = [make_record(f"file{i}.txt") for i in range(50)]
        token = CancellationToken()

        def on_progress(event: ProgressEvent) -> None:
            if event.phase is Phase.FILENAME_GROUPING and event.completed > 0:
                token.cancel()

        request = DetectionRequest(mode="filename", filename_mode="exact")

        outcome = engine.detect(records, request, on_progress=on_progress, cancel_token=token)

        assert outcome.status is OutcomeStatus.CANCELLED

    def test_progress_is_monotonic(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        events: list[ProgressEvent] = []
        request = DetectionRequest(
            mode="multi-criteria",
            criteria={"exact": True, "filename": True, "similarity": True},
        )

        engine.detect(batch, request, on_progress=events.append)

        fractions = [e.fraction for e in events]
        assert fractions == sorted(fractions)
        assert all(0.0 <= f <= 1.0 for f in fractions)
        assert events[-1].phase is Phase.COMPLETE
        assert events[-1].fraction == 1.0
        assert {Phase.SIGNATURES, Phase.EXACT_GROUPING, Phase.MERGING} <= {e.phase for e in events}

    def test_internal_failure_becomes_failed_outcome(self, batch: list[FileRecord]) -> None:
        scheduler = Mock(spec=WorkScheduler)
        scheduler.compute_artifacts.side_effect = RuntimeError("pool exploded")
        engine = DetectionEngine(scheduler=scheduler)

        outcome = engine.detect(batch, DetectionRequest(mode="exact"))

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.error.code is ErrorCode.DETECTION_FAILED
        assert isinstance(outcome.error.original_error, RuntimeError)

    def test_capacity_warnings_are_attached(self, batch: list[FileRecord]) -> None:
        warning = PerformanceWarning(kind="file_count", level=WarningLevel.WARNING, message="m", suggestion="s")
        advisor = Mock(spec=PerformanceAdvisor)
        advisor.check_capacity.return_value.warnings = [warning]

        with DetectionEngine(advisor=advisor) as engine:
            result = engine.detect(batch, DetectionRequest(mode="exact")).result

        assert result.warnings == [warning]

    def test_injected_scheduler_is_not_shut_down(self) -> None:
        scheduler = Mock(spec=WorkScheduler)

        DetectionEngine(scheduler=scheduler).shutdown()

        scheduler.shutdown.assert_not_called()

    def test_result_to_dict(self, engine: DetectionEngine, batch: list[FileRecord]) -> None:
        data = engine.detect(batch, DetectionRequest(mode="exact")).to_dict()

        assert data["status"] == "completed"
        assert data["result"]["scan_mode"] == "exact"
        assert data["result"]["groups"][0]["files"] == ["/a/photo.jpg", "/b/photo.jpg"]
        assert data["error"] is None


class TestDetectFunction:
    """Test cases for the convenience function."""

    def test_detect(self, batch: list[FileRecord], settings) -> None:
        outcome = detect(batch, DetectionRequest(mode="exact"), settings=settings)

        assert outcome.completed
        assert len(outcome.result.groups) == 1


class TestProgressTracker:
    """Test cases for progress fraction mapping."""

    def test_spans_follow_phase_weights(self) -> None:
        events: list[ProgressEvent] = []
        tracker = ProgressTracker(events.append, [Phase.HASHING, Phase.EXACT_GROUPING])

        tracker.callback(Phase.HASHING)(5, 10, "a.txt")

        assert events[-1].fraction == pytest.approx(3 / 7)
        assert events[-1].current_file == "a.txt"

    def test_never_goes_backwards(self) -> None:
        events: list[ProgressEvent] = []
        tracker = ProgressTracker(events.append, [Phase.HASHING, Phase.EXACT_GROUPING])

        tracker.finish(Phase.HASHING)
        tracker.callback(Phase.HASHING)(1, 10, None)

        assert events[-1].fraction == events[-2].fraction

    def test_without_handler(self) -> None:
        tracker = ProgressTracker(None, [Phase.EXACT_GROUPING])
        tracker.finish(Phase.EXACT_GROUPING)

        assert tracker.last_fraction == 1.0
