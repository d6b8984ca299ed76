"""
Upload planner.

Partitions ready candidates into one batch per resolved platform.
"""
from typing import Dict, Iterable

from .models import CandidateStatus, PlanResult, UploadBatch, UploadCandidate
from ..logging import get_logger

logger = get_logger('romup.upload.planner')


class UploadPlanner:
    """
    Groups ready candidates by platform.

    Batch order is the order in which each platform first appears among
    the candidates; it fixes submission order, not completion order.
    Ready candidates without a platform are left out and flagged
    ``needs-platform-selection``. Candidates in any other status are ignored.
    """

    def plan(self, candidates: Iterable[UploadCandidate]) -> PlanResult:
        batches: Dict[int, UploadBatch] = {}
        result = PlanResult()

        for candidate in candidates:
            if candidate.status != CandidateStatus.READY:
                continue
            if candidate.resolved_platform_id is None:
                candidate.mark(CandidateStatus.NEEDS_PLATFORM_SELECTION)
                result.unresolved.append(candidate)
                continue

            batch = batches.get(candidate.resolved_platform_id)
            if batch is None:
                batch = UploadBatch(platform_id=candidate.resolved_platform_id)
                batches[candidate.resolved_platform_id] = batch
            batch.files.append(candidate)

        result.batches = list(batches.values())
        logger.info(
            f"Planned {len(result.batches)} batch(es) for "
            f"{sum(len(b) for b in result.batches)} file(s)"
            + (f", {len(result.unresolved)} without platform" if result.unresolved else "")
        )
        return result
