"""
Upload pipeline orchestrator.

Runs validation -> hashing -> duplicate check -> platform detection ->
planning -> upload -> aggregation for one set of files, and owns the
fallback decisions between those stages. Depends on abstractions for every
external collaborator.
"""
import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .aggregator import ProgressAggregator
from .models import (
    BatchProgress,
    BatchResults,
    CandidateStatus,
    PipelineRunResult,
    RomFile,
    RunState,
    UploadBatch,
    UploadCandidate,
)
from .planner import UploadPlanner
from .protocols import (
    BatchUploaderProtocol,
    ContentHasherProtocol,
    DuplicateOracleProtocol,
    LoggerProtocol,
    PlatformRegistryProtocol,
)
from .services import ContentHasher, FileValidator
from ..api.config import PipelineConfig
from ..api.events import EventEmitter
from ..exceptions import (
    HashUnavailable,
    NetworkError,
    PipelineCancelled,
    PlatformAmbiguous,
    PlatformSelectionError,
    PlatformUnknown,
    RomUploadException,
)
from ..logging import get_logger
from ..platforms import DetectionResult, Platform, PlatformDetector, PlatformExtensionIndex

logger = get_logger('romup.upload.orchestrator')

FileInput = Union[RomFile, str, Path]
CandidateRef = Union[int, str]

_KEEP_ON_CANCEL = (CandidateStatus.DUPLICATE, CandidateStatus.NEEDS_PLATFORM_SELECTION)

_BEFORE_PLANNING = (
    RunState.IDLE,
    RunState.VALIDATING,
    RunState.HASHING_AND_DEDUP,
    RunState.AWAITING_PLATFORM_SELECTION,
)


class PipelineRun(EventEmitter):
    """
    State of one pipeline invocation.

    Created by :meth:`PipelineOrchestrator.start`. The run executes as a
    task on the running event loop; register handlers right after
    ``start()`` and before awaiting anything so no event is missed.

    Events:
        state(RunState), candidate(UploadCandidate),
        duplicates(list[UploadCandidate]),
        selection-required(list[DetectionResult]),
        progress(float), batch-complete(UploadBatch),
        done(PipelineRunResult)

    Handlers may call :meth:`include_duplicate`, :meth:`assign_platform`,
    :meth:`discard` and :meth:`skip_unresolved` directly.
    """

    def __init__(
        self,
        orchestrator: 'PipelineOrchestrator',
        files: Iterable[FileInput],
        platforms: Optional[Sequence[Platform]] = None
    ):
        super().__init__('romup.upload.run')
        self._orchestrator = orchestrator
        self._platforms = platforms
        self._state = RunState.IDLE
        self._index = PlatformExtensionIndex.empty()
        self._cancelled = False
        self._selection_gate = asyncio.Event()
        self._selection_gate.set()
        self._pending: Dict[int, DetectionResult] = {}
        self._selection_reasons: Dict[int, PlatformSelectionError] = {}
        self._aggregator: Optional[ProgressAggregator] = None
        self._batches: List[UploadBatch] = []
        self._result: Optional[PipelineRunResult] = None
        self._task: Optional[asyncio.Task] = None

        self._candidates: List[UploadCandidate] = []
        self._rejected_on_intake: Dict[int, str] = {}
        for position, item in enumerate(files):
            file, error = self._to_rom_file(item)
            self._candidates.append(UploadCandidate(id=position, file=file))
            if error:
                self._rejected_on_intake[position] = error

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def candidates(self) -> List[UploadCandidate]:
        return list(self._candidates)

    @property
    def index(self) -> PlatformExtensionIndex:
        """Registry snapshot taken at run start."""
        return self._index

    @property
    def batches(self) -> List[UploadBatch]:
        return list(self._batches)

    @property
    def pending_selections(self) -> List[DetectionResult]:
        """Detection results of files waiting for a platform choice."""
        return list(self._pending.values())

    @property
    def pending_candidates(self) -> List[UploadCandidate]:
        """Files waiting for a platform choice, in intake order."""
        return [c for c in self._candidates if c.id in self._pending]

    @property
    def duplicates(self) -> List[UploadCandidate]:
        return [c for c in self._candidates if c.status == CandidateStatus.DUPLICATE]

    @property
    def ledger(self) -> Dict[int, CandidateStatus]:
        """Candidate id -> current status."""
        return {c.id: c.status for c in self._candidates}

    @property
    def overall_percentage(self) -> float:
        if self._aggregator is not None:
            return self._aggregator.overall_percentage
        return 100.0 if self._state == RunState.DONE else 0.0

    @property
    def result(self) -> Optional[PipelineRunResult]:
        return self._result

    def done(self) -> bool:
        return self._result is not None

    # ------------------------------------------------------------------
    # User decisions
    # ------------------------------------------------------------------

    def include_duplicate(self, ref: CandidateRef) -> UploadCandidate:
        """
        Force a duplicate into the upload.

        The file is not validated or hashed again; platform detection runs
        for it as for any other file.

        Raises:
            PlatformSelectionError: If planning already started
            KeyError: If no duplicate matches ``ref``
        """
        self._ensure_before_planning()
        candidate = self._find(ref, CandidateStatus.DUPLICATE)
        candidate.duplicate_override = True
        logger.info(f"Including duplicate {candidate.name} on user request")
        self._resolve_platform(candidate)
        if candidate.status == CandidateStatus.NEEDS_PLATFORM_SELECTION and \
                self._state == RunState.AWAITING_PLATFORM_SELECTION:
            self._notify('selection-required', [self._pending[candidate.id]])
        return candidate

    def assign_platform(self, ref: CandidateRef, platform_id: int) -> UploadCandidate:
        """
        Resolve a file's platform explicitly.

        Assigning the last outstanding file releases the run into planning.

        Raises:
            PlatformUnknown: If the id is not in a non-empty snapshot
            PlatformSelectionError: If planning already started
            KeyError: If no file awaiting selection matches ``ref``
        """
        self._ensure_before_planning()
        candidate = self._find(ref, CandidateStatus.NEEDS_PLATFORM_SELECTION)
        if not self._index.is_empty() and platform_id not in self._index:
            raise PlatformUnknown(
                f"Platform {platform_id} is not an active platform",
                file_name=candidate.name,
                platform_id=platform_id
            )

        candidate.resolved_platform_id = platform_id
        candidate.error = None
        candidate.mark(CandidateStatus.READY)
        self._pending.pop(candidate.id, None)
        self._selection_reasons.pop(candidate.id, None)
        logger.info(f"Platform {platform_id} assigned to {candidate.name}")
        self._notify('candidate', candidate)
        self._update_selection_gate()
        return candidate

    def discard(self, ref: CandidateRef) -> UploadCandidate:
        """
        Drop a file from the run before planning.

        Raises:
            PlatformSelectionError: If planning already started
            KeyError: If no active file matches ``ref``
        """
        self._ensure_before_planning()
        candidate = self._find(ref)
        candidate.mark(CandidateStatus.DISCARDED)
        self._pending.pop(candidate.id, None)
        self._selection_reasons.pop(candidate.id, None)
        logger.info(f"Discarded {candidate.name}")
        self._notify('candidate', candidate)
        self._update_selection_gate()
        return candidate

    def skip_unresolved(self) -> List[UploadCandidate]:
        """
        Continue without the files still waiting for a platform.

        Those files stay ``needs-platform-selection`` and are left out of
        the upload.

        Returns:
            The files left out
        """
        self._ensure_before_planning()
        skipped = self.pending_candidates
        self._pending.clear()
        if skipped:
            logger.warning(f"Continuing without {len(skipped)} file(s) lacking a platform")
        self._update_selection_gate()
        return skipped

    def cancel(self) -> None:
        """
        Cancel the run.

        Stops further events and keeps batches that have not started from
        starting. Requests already in flight are not retracted.
        """
        if self._cancelled or self.done():
            return
        self._cancelled = True
        logger.warning(f"Run cancelled in state {self._state.value}")
        self._selection_gate.set()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _start(self) -> 'PipelineRun':
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._execute())
        return self

    async def wait(self) -> PipelineRunResult:
        """Wait for the run to finish. Never raises for pipeline failures."""
        self._start()
        await self._task
        return self._result

    def __await__(self):
        return self.wait().__await__()

    async def _execute(self) -> None:
        try:
            await self._run_stages()
        except PipelineCancelled:
            logger.info("Run stopped after cancellation")
        except Exception as e:
            # A run always completes with a result
            logger.exception(f"Pipeline run failed: {e}")
            for candidate in self._candidates:
                if not candidate.status.is_terminal and candidate.status != CandidateStatus.DUPLICATE:
                    candidate.mark(CandidateStatus.FAILED, str(e) or e.__class__.__name__)
        finally:
            self._finalize()

    async def _run_stages(self) -> None:
        await self._take_snapshot()

        self._set_state(RunState.VALIDATING)
        survivors = self._validate()
        self._check_cancelled()

        self._set_state(RunState.HASHING_AND_DEDUP)
        await self._hash_and_dedup(survivors)
        self._check_cancelled()

        duplicates = self.duplicates
        if duplicates:
            logger.warning(f"{len(duplicates)} file(s) already exist in the collection")
            self._notify('duplicates', duplicates)

        if self._pending:
            self._set_state(RunState.AWAITING_PLATFORM_SELECTION)
            logger.info(f"Waiting for platform selection on {len(self._pending)} file(s)")
            self._notify('selection-required', self.pending_selections)
            self._update_selection_gate()
            await self._selection_gate.wait()
        self._check_cancelled()

        self._set_state(RunState.PLANNING)
        plan = self._orchestrator.planner.plan(self._candidates)
        self._batches = plan.batches

        self._set_state(RunState.UPLOADING)
        await self._upload(plan.batches)

        self._set_state(RunState.AGGREGATING)

    async def _take_snapshot(self) -> None:
        if self._platforms is not None:
            platforms = list(self._platforms)
        else:
            try:
                platforms = await self._orchestrator.registry.list_active()
            except RomUploadException as e:
                logger.warning(f"Platform registry unavailable, manual selection required: {e}")
                platforms = []
        self._index = PlatformExtensionIndex(platforms)

    def _validate(self) -> List[UploadCandidate]:
        survivors = []
        validator = self._orchestrator.validator
        for candidate in self._candidates:
            candidate.mark(CandidateStatus.VALIDATING)
            intake_error = self._rejected_on_intake.get(candidate.id)
            if intake_error:
                candidate.mark(CandidateStatus.REJECTED, intake_error)
            else:
                result = validator.validate(candidate.file)
                if result.valid:
                    candidate.mark(CandidateStatus.PENDING)
                    survivors.append(candidate)
                    self._notify('candidate', candidate)
                    continue
                candidate.mark(CandidateStatus.REJECTED, result.message)
            logger.warning(f"Invalid file {candidate.name}: {candidate.error}")
            self._notify('candidate', candidate)
        logger.info(f"{len(survivors)}/{len(self._candidates)} file(s) passed validation")
        return survivors

    async def _hash_and_dedup(self, candidates: List[UploadCandidate]) -> None:
        semaphore = asyncio.Semaphore(self._orchestrator.config.max_concurrent_checks)

        async def process(candidate: UploadCandidate) -> None:
            async with semaphore:
                if self._cancelled:
                    return
                try:
                    await self._check_file(candidate)
                    if candidate.status != CandidateStatus.DUPLICATE:
                        self._resolve_platform(candidate)
                except Exception as e:
                    # Failures stay with their file
                    logger.exception(f"Processing failed for {candidate.name}: {e}")
                    candidate.mark(CandidateStatus.FAILED, str(e) or e.__class__.__name__)
                    self._pending.pop(candidate.id, None)
                    self._selection_reasons.pop(candidate.id, None)
                    self._notify('candidate', candidate)
                    self._update_selection_gate()

        await asyncio.gather(*(process(c) for c in candidates))

    async def _check_file(self, candidate: UploadCandidate) -> None:
        """Hash one file and ask the oracle about it; failures skip dedup."""
        candidate.mark(CandidateStatus.HASHING)
        self._notify('candidate', candidate)
        try:
            candidate.fingerprint = await self._orchestrator.hasher.hash(candidate.file)
        except HashUnavailable as e:
            candidate.dedup_skipped = e.message
            logger.warning(f"{e.message}; uploading without duplicate check")
            return
        except Exception as e:
            candidate.dedup_skipped = f"Hashing failed: {str(e) or e.__class__.__name__}"
            logger.warning(f"Hashing failed for {candidate.name}: {e!r}; uploading without duplicate check")
            return

        candidate.mark(CandidateStatus.DUPLICATE_CHECK)
        self._notify('candidate', candidate)
        try:
            verdict = await self._orchestrator.oracle.check(candidate.fingerprint)
        except NetworkError as e:
            candidate.dedup_skipped = e.message
            logger.warning(f"Duplicate check failed for {candidate.name}: {e.message}")
            return
        except Exception as e:
            candidate.dedup_skipped = f"Duplicate check failed: {str(e) or e.__class__.__name__}"
            logger.warning(f"Duplicate check failed for {candidate.name}: {e!r}")
            return

        if verdict.is_duplicate:
            candidate.existing_record = verdict.existing_record
            candidate.mark(CandidateStatus.DUPLICATE)
            advisory = " (weak fingerprint, advisory)" if candidate.fingerprint.is_fallback else ""
            logger.info(f"{candidate.name} is a duplicate{advisory}")
            self._notify('candidate', candidate)

    def _resolve_platform(self, candidate: UploadCandidate) -> None:
        detection = self._orchestrator.detector.detect(candidate.file, self._index)
        candidate.detection = detection

        if detection.recommended_platform is not None:
            candidate.resolved_platform_id = detection.recommended_platform.id
            candidate.mark(CandidateStatus.READY)
            logger.debug(f"{candidate.name} -> {detection.recommended_platform}")
        else:
            if detection.is_ambiguous:
                names = ', '.join(p.name for p in detection.possible_platforms)
                reason: PlatformSelectionError = PlatformAmbiguous(
                    f"Extension .{detection.extension} matches several platforms: {names}",
                    file_name=candidate.name
                )
            else:
                reason = PlatformUnknown(
                    f"No platform found for extension .{detection.extension}",
                    file_name=candidate.name
                )
            logger.warning(f"{candidate.name}: {reason.message}")
            candidate.resolved_platform_id = None
            candidate.mark(CandidateStatus.NEEDS_PLATFORM_SELECTION)
            self._pending[candidate.id] = detection
            self._selection_reasons[candidate.id] = reason

        self._notify('candidate', candidate)
        self._update_selection_gate()

    async def _upload(self, batches: List[UploadBatch]) -> None:
        self._aggregator = ProgressAggregator(batches)
        if not batches:
            logger.info("Nothing to upload")
            self._notify('progress', self._aggregator.overall_percentage)
            return

        limit = self._orchestrator.config.max_concurrent_batches
        semaphore = asyncio.Semaphore(limit or len(batches))
        await asyncio.gather(*(self._upload_batch(b, semaphore) for b in batches))

    async def _upload_batch(self, batch: UploadBatch, semaphore: asyncio.Semaphore) -> None:
        aggregator = self._aggregator
        async with semaphore:
            if self._cancelled:
                for candidate in batch.files:
                    candidate.error = 'Run cancelled before upload started'
                logger.info(f"Skipping platform {batch.platform_id} batch after cancellation")
                return

            aggregator.start_batch(batch.platform_id)
            for candidate in batch.files:
                self._notify('candidate', candidate)

            try:
                stream = self._orchestrator.uploader.upload(
                    [c.file for c in batch.files], batch.platform_id
                )
                async for event in stream:
                    if isinstance(event, BatchProgress):
                        overall = aggregator.record_progress(batch.platform_id, event)
                        self._notify('progress', overall)
                    elif isinstance(event, BatchResults):
                        aggregator.record_results(batch.platform_id, event.results)
                if not aggregator.is_batch_complete(batch.platform_id):
                    aggregator.record_failure(batch.platform_id, 'Upload ended without results')
            except NetworkError as e:
                logger.error(f"Upload error for platform {batch.platform_id}: {e.message}")
                aggregator.record_failure(batch.platform_id, e.message)
            except Exception as e:
                # Failures stay inside their batch
                logger.exception(f"Upload error for platform {batch.platform_id}: {e}")
                aggregator.record_failure(batch.platform_id, str(e) or 'Upload failed')

        for candidate in batch.files:
            self._notify('candidate', candidate)
        self._notify('progress', aggregator.overall_percentage)
        self._notify('batch-complete', batch)

    def _finalize(self) -> None:
        if self._cancelled:
            for candidate in self._candidates:
                if candidate.status not in _KEEP_ON_CANCEL and not candidate.status.is_terminal \
                        and candidate.error is None:
                    candidate.error = PipelineCancelled().message

        for candidate_id, reason in self._selection_reasons.items():
            candidate = self._candidates[candidate_id]
            if candidate.status == CandidateStatus.NEEDS_PLATFORM_SELECTION and candidate.error is None:
                candidate.error = reason.message

        self._state = RunState.DONE
        self._result = PipelineRunResult.from_candidates(
            self._candidates,
            cancelled=self._cancelled,
            overall_percentage=self.overall_percentage,
        )
        title, message = self._result.summary()
        logger.info(
            f"Run finished: {self._result.succeeded} succeeded, {self._result.failed} failed, "
            f"{self._result.skipped_as_duplicate} duplicate(s), {self._result.rejected} rejected. {title}"
        )
        self.emit('state', RunState.DONE)
        self.emit('done', self._result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify(self, event: str, *args) -> None:
        if not self._cancelled:
            self.emit(event, *args)

    def _set_state(self, state: RunState) -> None:
        self._state = state
        logger.debug(f"Run state -> {state.value}")
        self._notify('state', state)

    def _check_cancelled(self) -> None:
        if self._cancelled:
            raise PipelineCancelled()

    def _update_selection_gate(self) -> None:
        if self._pending:
            self._selection_gate.clear()
        else:
            self._selection_gate.set()

    def _ensure_before_planning(self) -> None:
        if self._state not in _BEFORE_PLANNING:
            raise PlatformSelectionError(f"Run is already {self._state.value}")

    def _find(self, ref: CandidateRef, status: Optional[CandidateStatus] = None) -> UploadCandidate:
        for candidate in self._candidates:
            if status is not None and candidate.status != status:
                continue
            if status is None and (candidate.status.is_terminal or candidate.status == CandidateStatus.UPLOADING):
                continue
            if (isinstance(ref, int) and candidate.id == ref) or \
                    (isinstance(ref, str) and candidate.name == ref):
                return candidate
        qualifier = f" with status {status.value}" if status else ""
        raise KeyError(f"No file {ref!r}{qualifier}")

    @staticmethod
    def _to_rom_file(item: FileInput):
        if isinstance(item, RomFile):
            return item, None
        path = Path(item)
        try:
            return RomFile.from_path(path), None
        except (FileNotFoundError, ValueError, OSError) as e:
            return RomFile(name=path.name or str(path), size=0, path=path), str(e)


class PipelineOrchestrator:
    """
    Composition root of the upload pipeline.

    Uses dependency injection for every component, so each can be swapped
    (HTTP collaborators in production, in-memory ones in tests).

    Example:
        >>> orchestrator = PipelineOrchestrator(registry, oracle, uploader)
        >>> run = orchestrator.start(["mario.nes", "zelda.sfc"])
        >>> run.on('selection-required', ask_user)
        >>> result = await run.wait()
        >>> result.summary()
    """

    def __init__(
        self,
        registry: PlatformRegistryProtocol,
        oracle: DuplicateOracleProtocol,
        uploader: BatchUploaderProtocol,
        hasher: Optional[ContentHasherProtocol] = None,
        validator: Optional[FileValidator] = None,
        detector: Optional[PlatformDetector] = None,
        planner: Optional[UploadPlanner] = None,
        config: Optional[PipelineConfig] = None,
        logger: Optional[LoggerProtocol] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: Platform registry (one snapshot per run)
            oracle: Duplicate oracle
            uploader: Batch uploader
            hasher: Content hasher
            validator: File validator
            detector: Platform detector
            planner: Upload planner
            config: Pipeline configuration
            logger: Logger instance
        """
        self.config = config or PipelineConfig()
        self.registry = registry
        self.oracle = oracle
        self.uploader = uploader
        self.hasher = hasher or ContentHasher(sample_size=self.config.fallback_sample_size)
        self.validator = validator or FileValidator(self.config.max_file_size)
        self.detector = detector or PlatformDetector()
        self.planner = planner or UploadPlanner()
        self._logger = logger or get_logger('romup.upload')

    def start(
        self,
        files: Iterable[FileInput],
        platforms: Optional[Sequence[Platform]] = None
    ) -> PipelineRun:
        """
        Start a run on the running event loop.

        Args:
            files: File handles or paths
            platforms: Registry snapshot to use instead of fetching one

        Returns:
            The run; await ``run.wait()`` for its result
        """
        run = PipelineRun(self, files, platforms)
        self._logger.info(f"Starting pipeline run for {len(run.candidates)} file(s)")
        return run._start()

    async def run(
        self,
        files: Iterable[FileInput],
        platforms: Optional[Sequence[Platform]] = None
    ) -> PipelineRunResult:
        """Run the pipeline to completion and return its result."""
        return await self.start(files, platforms).wait()
