"""
Progress aggregation across concurrently uploading batches.

Merging is order independent: each batch owns its own slot, progress only
moves forward, and a batch's terminal event fixes it at 100% and settles
the status of its files. Feeding the same events in any order yields the
same ledger and the same final percentage.
"""
from typing import Dict, List, Optional, Sequence

from .models import (
    BatchProgress,
    CandidateStatus,
    PerFileResult,
    UploadBatch,
    UploadCandidate,
)
from ..logging import get_logger

logger = get_logger('romup.upload.aggregator')

MISSING_RESULT_MESSAGE = 'No result returned for file'


class ProgressAggregator:
    """
    Combines batch progress into one percentage and a per-file ledger.

    Overall percentage is the byte-weighted average of batch percentages.
    An empty plan is complete, at 100%, as soon as it is created.
    """

    def __init__(self, batches: Sequence[UploadBatch]):
        self._batches: Dict[int, UploadBatch] = {}
        self._fractions: Dict[int, float] = {}
        self._terminal: Dict[int, bool] = {}
        for batch in batches:
            if batch.platform_id in self._batches:
                raise ValueError(f"Two batches for platform {batch.platform_id}")
            self._batches[batch.platform_id] = batch
            self._fractions[batch.platform_id] = 0.0
            self._terminal[batch.platform_id] = False

        self._candidates: Dict[int, UploadCandidate] = {
            c.id: c for batch in self._batches.values() for c in batch.files
        }
        self._total_bytes = sum(b.total_bytes for b in self._batches.values())

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    @property
    def overall_percentage(self) -> float:
        if self._total_bytes == 0:
            return 100.0
        weighted = sum(
            self._fractions[platform_id] * batch.total_bytes
            for platform_id, batch in self._batches.items()
        )
        return (weighted / self._total_bytes) * 100

    @property
    def is_complete(self) -> bool:
        return all(self._terminal.values())

    @property
    def ledger(self) -> Dict[int, CandidateStatus]:
        """Candidate id -> current status."""
        return {cid: c.status for cid, c in self._candidates.items()}

    def batch_percentage(self, platform_id: int) -> float:
        return self._fractions[platform_id] * 100

    def is_batch_complete(self, platform_id: int) -> bool:
        return self._terminal[platform_id]

    def start_batch(self, platform_id: int) -> None:
        """Mark a batch's files as uploading."""
        batch = self._get(platform_id)
        if self._terminal[platform_id]:
            return
        for candidate in batch.files:
            candidate.mark(CandidateStatus.UPLOADING)

    def record_progress(self, platform_id: int, progress: BatchProgress) -> float:
        """
        Merge a progress event.

        Returns:
            The overall percentage after merging
        """
        self._get(platform_id)
        if not self._terminal[platform_id] and progress.total > 0:
            fraction = min(1.0, max(0.0, progress.loaded / progress.total))
            if fraction > self._fractions[platform_id]:
                self._fractions[platform_id] = fraction
        return self.overall_percentage

    def record_results(self, platform_id: int, results: Sequence[PerFileResult]) -> List[UploadCandidate]:
        """
        Merge a batch's terminal results.

        Results are matched to the batch's files by name, in order, so
        repeated names pair up one to one. Files the server did not report
        on are marked failed.

        Returns:
            The batch's candidates after update
        """
        batch = self._get(platform_id)
        if self._terminal[platform_id]:
            logger.warning(f"Ignoring repeated results for platform {platform_id}")
            return batch.files

        pending: Dict[str, List[UploadCandidate]] = {}
        for candidate in batch.files:
            pending.setdefault(candidate.name, []).append(candidate)

        for result in results:
            matches = pending.get(result.file_name)
            if not matches:
                logger.warning(f"Result for unknown file {result.file_name!r} in platform {platform_id} batch")
                continue
            candidate = matches.pop(0)
            candidate.result = result
            if result.success:
                candidate.mark(CandidateStatus.SUCCEEDED)
                candidate.error = None
            else:
                candidate.mark(CandidateStatus.FAILED, result.message or 'Upload failed')

        for leftovers in pending.values():
            for candidate in leftovers:
                candidate.mark(CandidateStatus.FAILED, MISSING_RESULT_MESSAGE)

        self._finish(platform_id)
        return batch.files

    def record_failure(self, platform_id: int, message: str) -> List[UploadCandidate]:
        """Mark every file of a batch failed with the batch's error."""
        batch = self._get(platform_id)
        if self._terminal[platform_id]:
            return batch.files
        for candidate in batch.files:
            candidate.mark(CandidateStatus.FAILED, message)
        self._finish(platform_id)
        return batch.files

    def _finish(self, platform_id: int) -> None:
        self._fractions[platform_id] = 1.0
        self._terminal[platform_id] = True

    def _get(self, platform_id: int) -> UploadBatch:
        batch: Optional[UploadBatch] = self._batches.get(platform_id)
        if batch is None:
            raise KeyError(f"No batch for platform {platform_id}")
        return batch
