"""Detection engine for Twinscan.

This module provides the DetectionEngine class that runs one detection
request over a batch of files: it validates the request, computes the
per-file artifacts the requested mode needs on the worker pools, runs the
matchers, merges their groups for multi-criteria runs and suggests which
file of each group to keep.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from twinscan.config.models.settings import Settings
from twinscan.core.cancellation import CancellationToken, check_cancelled
from twinscan.core.file_grouper.duplicate_resolver import (
    DuplicateResolver,
    KeepPolicy,
    ResolutionConfig,
)
from twinscan.core.file_grouper.matchers import (
    ExactMatcher,
    FilenameMatcher,
    SimilarityMatcher,
)
from twinscan.core.file_grouper.merger import PriorityMerger
from twinscan.core.file_grouper.models import Group
from twinscan.core.filename_normalizer import FilenameNormalizer
from twinscan.core.models import ArtifactKind, Criterion, FileRecord, ProgressCallback, ScanMode
from twinscan.core.performance import PerformanceAdvisor
from twinscan.core.request import DetectionRequest
from twinscan.core.results import (
    DetectionResult,
    OutcomeStatus,
    Phase,
    ProgressEvent,
    ProgressHandler,
    ScanOutcome,
)
from twinscan.core.scheduler import ArtifactResult, WorkScheduler
from twinscan.core.signature import SignatureBuilder
from twinscan.core.statistics import PhaseTimings, ScanSummary
from twinscan.shared.errors import (
    DetectionError,
    ErrorCode,
    ErrorContext,
    OperationCancelledError,
    TwinscanError,
    create_invalid_parameters_error,
)
from twinscan.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
    log_validation_error,
)

logger = logging.getLogger(__name__)

# Relative share of overall progress per phase
_PHASE_WEIGHTS: dict[Phase, float] = {
    Phase.HASHING: 6.0,
    Phase.SIGNATURES: 6.0,
    Phase.EXACT_GROUPING: 1.0,
    Phase.FILENAME_GROUPING: 3.0,
    Phase.SIMILARITY_GROUPING: 3.0,
    Phase.MERGING: 1.0,
}

_GROUPING_PHASES: dict[str, Phase] = {
    Criterion.EXACT.value: Phase.EXACT_GROUPING,
    Criterion.FILENAME.value: Phase.FILENAME_GROUPING,
    Criterion.SIMILARITY.value: Phase.SIMILARITY_GROUPING,
}


class ProgressTracker:
    """Maps per-phase progress onto one monotonic overall fraction.

    Every phase owns a contiguous span of [0, 1]; a phase reporting
    ``completed / total`` is placed proportionally inside its span. Emitted
    fractions never decrease, even if a phase reports out of order.

    Example:
        >>> tracker = ProgressTracker(events.append, [Phase.HASHING, Phase.EXACT_GROUPING])
        >>> tracker.callback(Phase.HASHING)(5, 10, "a.txt")
        >>> round(events[-1].fraction, 3)
        0.429
    """

    def __init__(self, handler: ProgressHandler | None, phases: Sequence[Phase]) -> None:
        self.handler = handler
        self.spans: dict[Phase, tuple[float, float]] = {}
        self._last = 0.0

        total_weight = sum(_PHASE_WEIGHTS.get(phase, 1.0) for phase in phases)
        position = 0.0
        for phase in phases:
            share = _PHASE_WEIGHTS.get(phase, 1.0) / total_weight if total_weight else 0.0
            self.spans[phase] = (position, min(1.0, position + share))
            position += share

    @property
    def last_fraction(self) -> float:
        return self._last

    def emit(
        self,
        phase: Phase,
        fraction: float,
        *,
        current_file: str | None = None,
        completed: int = 0,
        total: int = 0,
        message: str = "",
    ) -> None:
        """Send one event, clamped so the fraction never goes backwards."""
        fraction = min(1.0, max(self._last, fraction))
        self._last = fraction
        if self.handler is None:
            return
        self.handler(
            ProgressEvent(
                fraction=fraction,
                phase=phase,
                current_file=current_file,
                completed=completed,
                total=total,
                message=message,
            ),
        )

    def begin(self, phase: Phase) -> None:
        start, _ = self.spans.get(phase, (self._last, self._last))
        self.emit(phase, start, message=f"Starting {phase.value}")

    def finish(self, phase: Phase) -> None:
        _, end = self.spans.get(phase, (self._last, self._last))
        self.emit(phase, end, message=f"Finished {phase.value}")

    def callback(self, phase: Phase) -> ProgressCallback:
        """Adapt (completed, total, current_name) reports of one phase."""
        start, end = self.spans.get(phase, (self._last, self._last))

        def report(completed: int, total: int, current_file: str | None) -> None:
            share = completed / total if total else 1.0
            self.emit(
                phase,
                start + (end - start) * share,
                current_file=current_file,
                completed=completed,
                total=total,
                message=f"{phase.value}: {completed}/{total}",
            )

        return report


class DetectionEngine:
    """Runs detection requests over batches of file records.

    The engine owns a WorkScheduler unless one is injected, and keeps a
    SignatureBuilder per (num_perm, shingle_size, seed) so repeated runs
    reuse the same permutations. Runs are deterministic: the same files and
    request always produce the same groups.

    Attributes:
        settings: Loaded configuration.
        scheduler: Worker pools for hashing and signature building.
        advisor: Capacity checks raised as result warnings.
        normalizer: Shared filename normalizer.

    Example:
        >>> with DetectionEngine() as engine:
        ...     outcome = engine.detect(files, DetectionRequest(mode="exact"))
        >>> [g.paths for g in outcome.result.groups]
        [['/a/photo.jpg', '/b/photo.jpg']]
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scheduler: WorkScheduler | None = None,
        advisor: PerformanceAdvisor | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Configuration; defaults plus environment overrides if None.
            scheduler: Worker pools to use. If None, the engine builds and
                owns one sized from ``settings.performance``.
            advisor: Capacity advisor. If None, built from ``settings.performance``.
        """
        self.settings = settings or Settings()
        performance = self.settings.performance

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or WorkScheduler(
            hash_workers=performance.hash_workers,
            similarity_workers=performance.similarity_workers,
            progress_interval=performance.progress_interval,
        )
        self.advisor = advisor or PerformanceAdvisor(
            memory_warning_bytes=performance.memory_warning_bytes,
            max_files_warning=performance.max_files_warning,
        )
        self.normalizer = FilenameNormalizer()
        self._signature_builders: dict[tuple[int, int, int], SignatureBuilder] = {}

    def __enter__(self) -> DetectionEngine:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.shutdown()

    def shutdown(self) -> None:
        """Release the worker pools if this engine created them."""
        if self._owns_scheduler:
            self.scheduler.shutdown()

    def request_for(self, mode: ScanMode | str) -> DetectionRequest:
        """Build a request for ``mode`` from this engine's settings."""
        return DetectionRequest.from_settings(self.settings, mode)

    def detect(
        self,
        files: Sequence[FileRecord],
        request: DetectionRequest,
        on_progress: ProgressHandler | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ScanOutcome:
        """Run one detection request.

        Parameter problems are raised immediately, before any file is read.
        Everything after validation ends in a ScanOutcome: completed with a
        result, cancelled, or failed with the error that stopped the run.

        Args:
            files: Batch of file records; paths must be unique.
            request: What to detect and with which parameters.
            on_progress: Receives ProgressEvents with non-decreasing fractions.
            cancel_token: Cooperative cancellation flag, polled at phase
                boundaries, between worker chunks and inside matcher loops.

        Returns:
            ScanOutcome describing how the run ended.

        Raises:
            InvalidParametersError: If the request or the batch is invalid.
        """
        request.validate()
        files = list(files)
        self._validate_files(files)

        mode = request.scan_mode
        context = ErrorContext(
            operation="detect",
            additional_data={"scan_mode": mode.value, "file_count": len(files)},
        )
        log_operation_start(logger, "detect", context={"scan_mode": mode.value, "file_count": len(files)})

        timings = PhaseTimings()
        tracker = ProgressTracker(on_progress, self._plan_phases(request))

        try:
            result = self._run(files, request, tracker, cancel_token, timings)
        except OperationCancelledError as e:
            logger.info("Detection cancelled: %s", e.message)
            return ScanOutcome(status=OutcomeStatus.CANCELLED, error=e)
        except TwinscanError as e:
            log_operation_error(logger, e, "detect", context)
            return ScanOutcome(status=OutcomeStatus.FAILED, error=e)
        except Exception as e:
            error = DetectionError(
                code=ErrorCode.DETECTION_FAILED,
                message=f"Detection failed: {e}",
                context=context,
                original_error=e,
            )
            log_operation_error(logger, error, "detect", context)
            return ScanOutcome(status=OutcomeStatus.FAILED, error=error)

        tracker.emit(
            Phase.COMPLETE,
            1.0,
            completed=len(files),
            total=len(files),
            message=f"Found {result.summary.group_count} groups",
        )
        log_operation_success(
            logger,
            "detect",
            result.duration_ms,
            result_info=result.summary.to_dict(),
            context={"scan_mode": mode.value},
        )
        return ScanOutcome(status=OutcomeStatus.COMPLETED, result=result)

    def _run(
        self,
        files: list[FileRecord],
        request: DetectionRequest,
        tracker: ProgressTracker,
        cancel_token: CancellationToken | None,
        timings: PhaseTimings,
    ) -> DetectionResult:
        mode = request.scan_mode
        enabled = request.enabled_criteria

        report = self.advisor.check_capacity(files, mode, request.num_perm)

        artifacts = ArtifactResult()
        needed = request.needed_artifacts
        if needed:
            phase = Phase.SIGNATURES if ArtifactKind.SIGNATURE in needed else Phase.HASHING
            tracker.begin(phase)
            with timings.phase(phase.value):
                artifacts = self.scheduler.compute_artifacts(
                    files,
                    needed,
                    on_progress=tracker.callback(phase),
                    cancel_token=cancel_token,
                    signature_builder=self._signature_builder(request),
                )
            tracker.finish(phase)

        results: dict[str, list[Group]] = {}
        for criterion in enabled:
            check_cancelled(cancel_token, "detect", 0, len(files))
            phase = _GROUPING_PHASES[criterion]
            tracker.begin(phase)
            with timings.phase(phase.value):
                results[criterion] = self._group_by(
                    criterion,
                    files,
                    artifacts,
                    request,
                    tracker.callback(phase),
                    cancel_token,
                )
            tracker.finish(phase)
            logger.debug("%s grouping produced %d groups", criterion, len(results[criterion]))

        if mode is ScanMode.MULTI_CRITERIA:
            check_cancelled(cancel_token, "detect", 0, len(files))
            tracker.begin(Phase.MERGING)
            with timings.phase(Phase.MERGING.value):
                merger = PriorityMerger(priority_order=request.priority_order, weights=request.weights)
                groups = merger.merge(results)
            tracker.finish(Phase.MERGING)
        else:
            groups = results[mode.value]

        resolver = DuplicateResolver(
            config=ResolutionConfig(policy=KeepPolicy(request.keep_policy)),
            normalizer=self.normalizer,
        )
        resolver.annotate(groups)

        return DetectionResult(
            groups=groups,
            total_files=len(files),
            scan_mode=mode,
            thresholds_used=request.thresholds_used(),
            failures=artifacts.failures,
            summary=ScanSummary.from_groups(groups, failed_file_count=len(artifacts.failures)),
            warnings=report.warnings,
            duration_ms=timings.total_ms,
            phase_durations_ms=dict(timings.durations_ms),
        )

    def _group_by(
        self,
        criterion: str,
        files: list[FileRecord],
        artifacts: ArtifactResult,
        request: DetectionRequest,
        on_progress: ProgressCallback,
        cancel_token: CancellationToken | None,
    ) -> list[Group]:
        """Run the matcher for one criterion."""
        if criterion == Criterion.EXACT.value:
            groups = ExactMatcher().match(artifacts.digests())
            on_progress(1, 1, None)
            return groups
        if criterion == Criterion.FILENAME.value:
            # Names need no content, so unreadable files still take part
            matcher = FilenameMatcher(
                mode=request.filename_mode_value,
                threshold=request.filename_threshold,
                normalizer=self.normalizer,
            )
            return matcher.match(files, on_progress=on_progress, cancel_token=cancel_token)
        if criterion == Criterion.SIMILARITY.value:
            matcher = SimilarityMatcher(threshold=request.similarity_threshold)
            return matcher.match(artifacts.signatures(), on_progress=on_progress, cancel_token=cancel_token)
        msg = f"No matcher for criterion {criterion!r}"
        raise DetectionError(code=ErrorCode.DETECTION_FAILED, message=msg)

    def _signature_builder(self, request: DetectionRequest) -> SignatureBuilder:
        key = (request.num_perm, request.shingle_size, request.seed)
        builder = self._signature_builders.get(key)
        if builder is None:
            builder = SignatureBuilder(
                num_perm=request.num_perm,
                shingle_size=request.shingle_size,
                seed=request.seed,
            )
            self._signature_builders[key] = builder
        return builder

    @staticmethod
    def _plan_phases(request: DetectionRequest) -> list[Phase]:
        phases: list[Phase] = []
        needed = request.needed_artifacts
        if ArtifactKind.SIGNATURE in needed:
            phases.append(Phase.SIGNATURES)
        elif needed:
            phases.append(Phase.HASHING)
        phases.extend(_GROUPING_PHASES[c] for c in request.enabled_criteria)
        if request.scan_mode is ScanMode.MULTI_CRITERIA:
            phases.append(Phase.MERGING)
        return phases

    @staticmethod
    def _validate_files(files: list[FileRecord]) -> None:
        seen: set[str] = set()
        for file in files:
            if not isinstance(file, FileRecord):
                message = f"Expected FileRecord, got {type(file).__name__}"
                log_validation_error(logger, "files", type(file).__name__, message)
                raise create_invalid_parameters_error(message, "files", type(file).__name__)
            if file.path in seen:
                message = f"Duplicate path in batch: {file.path}"
                log_validation_error(logger, "files", file.path, message)
                raise create_invalid_parameters_error(message, "files", file.path)
            seen.add(file.path)


def detect(
    files: Sequence[FileRecord],
    request: DetectionRequest,
    on_progress: ProgressHandler | None = None,
    cancel_token: CancellationToken | None = None,
    settings: Settings | None = None,
) -> ScanOutcome:
    """Convenience function: run one request on a short-lived engine.

    Example:
        >>> outcome = detect(files, DetectionRequest(mode="filename"))
        >>> outcome.completed
        True
    """
    with DetectionEngine(settings=settings) as engine:
        return engine.detect(files, request, on_progress=on_progress, cancel_token=cancel_token)


__all__ = ["DetectionEngine", "ProgressTracker", "detect"]
