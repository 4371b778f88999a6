"""Work scheduler for per-file artifact computation.

This module fans per-file hashing and signature work out to bounded
ThreadPoolExecutors. Files are processed in chunks the size of the active
pool so that at most one chunk's byte buffers are alive at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from twinscan.core.cancellation import CancellationToken, check_cancelled
from twinscan.core.hasher import ContentHasher
from twinscan.core.models import (
    ArtifactKind,
    ContentDigest,
    FileFailure,
    FileRecord,
    ProgressCallback,
    SimilaritySignature,
)
from twinscan.core.performance import default_hash_workers, default_similarity_workers
from twinscan.core.signature import SignatureBuilder
from twinscan.shared.constants import Progress
from twinscan.shared.errors import ErrorCode, ErrorContext, InfrastructureError, UnreadableFileError
from twinscan.shared.logging import log_file_failure

logger = logging.getLogger(__name__)

@dataclass
class FileArtifacts:
    """Artifacts computed for one successfully read file.

    Attributes:
        index: Position of the file in the input batch.
        record: The caller's record.
        digest: SHA-256 digest, when requested.
        signature: MinHash signature, when requested.
    """

    index: int
    record: FileRecord
    digest: ContentDigest | None = None
    signature: SimilaritySignature | None = None


@dataclass
class ArtifactResult:
    """Collected artifacts in input order plus per-file failures."""

    artifacts: list[FileArtifacts] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)

    def digests(self) -> list[tuple[FileRecord, ContentDigest]]:
        """(record, digest) pairs in input order."""
        return [(a.record, a.digest) for a in self.artifacts if a.digest is not None]

    def signatures(self) -> list[tuple[FileRecord, SimilaritySignature]]:
        """(record, signature) pairs in input order."""
        return [(a.record, a.signature) for a in self.artifacts if a.signature is not None]

    @property
    def failed_paths(self) -> set[str]:
        return {f.path for f in self.failures}


class WorkScheduler:
    """Bounded worker pools for hashing and signature building.

    Two pools are kept: a hashing pool and a smaller similarity pool, since
    shingling costs far more CPU per file than hashing. Pools start lazily
    on first use and are released by ``shutdown()`` or by leaving a ``with``
    block.

    Attributes:
        hash_workers: Hashing pool size.
        similarity_workers: Signature pool size.
        progress_interval: Completions between progress callbacks.

    Example:
        >>> with WorkScheduler(hash_workers=2) as scheduler:
        ...     result = scheduler.compute_artifacts(files, {ArtifactKind.DIGEST})
        >>> len(result.digests()) == len(files)
        True
    """

    def __init__(
        self,
        hash_workers: int | None = None,
        similarity_workers: int | None = None,
        progress_interval: int = Progress.ARTIFACT_INTERVAL,
        hasher: ContentHasher | None = None,
    ) -> None:
        """Initialize the WorkScheduler.

        Args:
            hash_workers: Hashing pool size. If None, every core but one.
            similarity_workers: Signature pool size. If None, half the cores.
            progress_interval: Report progress every this many completions.
            hasher: Content hasher; a SHA-256 ContentHasher by default.

        Raises:
            ValueError: If a pool size or the progress interval is not positive.
        """
        self.hash_workers = hash_workers if hash_workers is not None else default_hash_workers()
        self.similarity_workers = (
            similarity_workers if similarity_workers is not None else default_similarity_workers()
        )
        if self.hash_workers < 1 or self.similarity_workers < 1:
            msg = (
                f"Worker counts must be positive, got hash_workers={self.hash_workers}, "
                f"similarity_workers={self.similarity_workers}"
            )
            raise ValueError(msg)
        if progress_interval < 1:
            msg = f"progress_interval must be positive, got {progress_interval}"
            raise ValueError(msg)

        self.progress_interval = progress_interval
        self.hasher = hasher or ContentHasher()

        self._hash_executor: ThreadPoolExecutor | None = None
        self._similarity_executor: ThreadPoolExecutor | None = None

        logger.debug(
            "Initialized WorkScheduler with hash_workers=%d, similarity_workers=%d, progress_interval=%d",
            self.hash_workers,
            self.similarity_workers,
            self.progress_interval,
        )

    def __enter__(self) -> WorkScheduler:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.shutdown()

    def start(self) -> None:
        """Start both thread pools if they are not running."""
        if self._hash_executor is None:
            self._hash_executor = ThreadPoolExecutor(
                max_workers=self.hash_workers,
                thread_name_prefix="twinscan-hash",
            )
        if self._similarity_executor is None:
            self._similarity_executor = ThreadPoolExecutor(
                max_workers=self.similarity_workers,
                thread_name_prefix="twinscan-similarity",
            )
        logger.debug("Started worker pools")

    def shutdown(self, wait: bool = True) -> None:
        """Shut down both thread pools.

        Args:
            wait: Whether to wait for in-flight tasks to finish.
        """
        for executor in (self._hash_executor, self._similarity_executor):
            if executor is not None:
                executor.shutdown(wait=wait)
        if self._hash_executor is not None or self._similarity_executor is not None:
            logger.debug("Shutdown worker pools (wait=%s)", wait)
        self._hash_executor = None
        self._similarity_executor = None

    def is_running(self) -> bool:
        return self._hash_executor is not None

    def compute_artifacts(
        self,
        files: Sequence[FileRecord],
        needed: Collection[ArtifactKind],
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        signature_builder: SignatureBuilder | None = None,
    ) -> ArtifactResult:
        """Compute the requested artifacts for every file.

        Each file is read once by one worker, which computes everything
        requested from that single buffer. The cancellation token is polled
        before each chunk is submitted.

        Args:
            files: Batch of records, in caller order.
            needed: Artifact kinds to compute.
            on_progress: Called with (completed, total, current_name) every
                ``progress_interval`` completions and once at the end.
            cancel_token: Cooperative cancellation flag.
            signature_builder: Builder used when signatures are requested;
                a default-parameter SignatureBuilder otherwise.

        Returns:
            ArtifactResult with artifacts and failures in input order.

        Raises:
            OperationCancelledError: If cancellation was observed.
            InfrastructureError: WORKER_POOL_ERROR if a pool refuses new work.
        """
        needed = frozenset(ArtifactKind(kind) for kind in needed)
        result = ArtifactResult()
        total = len(files)
        if total == 0 or not needed:
            return result

        builder: SignatureBuilder | None = None
        if ArtifactKind.SIGNATURE in needed:
            builder = signature_builder or SignatureBuilder()

        self.start()
        if builder is not None:
            executor, chunk_size = self._similarity_executor, self.similarity_workers
        else:
            executor, chunk_size = self._hash_executor, self.hash_workers
        logger.info(
            "Computing %s for %d files in chunks of %d",
            ", ".join(sorted(kind.value for kind in needed)),
            total,
            chunk_size,
        )

        failures: list[tuple[int, FileFailure]] = []
        completed = 0

        for start in range(0, total, chunk_size):
            check_cancelled(cancel_token, "compute_artifacts", completed, total)

            futures: dict[Future[FileArtifacts], tuple[int, FileRecord]] = {}
            for index in range(start, min(start + chunk_size, total)):
                record = files[index]
                try:
                    future = executor.submit(self._process_file, index, record, needed, builder)
                except RuntimeError as e:
                    raise InfrastructureError(
                        code=ErrorCode.WORKER_POOL_ERROR,
                        message=f"Worker pool rejected work: {e}",
                        context=ErrorContext(operation="compute_artifacts", file_path=record.path),
                        original_error=e,
                    ) from e
                futures[future] = (index, record)

            for future in as_completed(futures):
                index, record = futures[future]
                try:
                    result.artifacts.append(future.result())
                except UnreadableFileError as e:
                    log_file_failure(logger, e, record.name)
                    failures.append(
                        (
                            index,
                            FileFailure(
                                path=record.path,
                                name=record.name,
                                error_code=e.code.value,
                                message=e.message,
                            ),
                        ),
                    )

                completed += 1
                if on_progress is not None and (
                    completed % self.progress_interval == 0 or completed == total
                ):
                    on_progress(completed, total, record.name)

        result.artifacts.sort(key=lambda a: a.index)
        failures.sort(key=lambda item: item[0])
        result.failures = [failure for _, failure in failures]

        logger.info(
            "Computed artifacts for %d files (%d failed)",
            len(result.artifacts),
            len(result.failures),
        )
        return result

    def _process_file(
        self,
        index: int,
        record: FileRecord,
        needed: frozenset[ArtifactKind],
        builder: SignatureBuilder | None,
    ) -> FileArtifacts:
        """Read one file once and compute its artifacts."""
        data = record.read_bytes()
        artifacts = FileArtifacts(index=index, record=record)
        if ArtifactKind.DIGEST in needed:
            artifacts.digest = self.hasher.digest(data)
        if builder is not None:
            artifacts.signature = builder.signature(data)
        return artifacts


__all__ = ["ArtifactResult", "FileArtifacts", "WorkScheduler"]
