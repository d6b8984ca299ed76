"""
Data models for the upload pipeline.

Uses dataclasses for type-safe data structures. Candidates are mutable and
advance in place through the pipeline; everything handed back to callers as
a result is a snapshot.
"""
import copy
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple, Union

from ...platforms.detector import DetectionResult
from ...utils import format_file_size


@dataclass(frozen=True)
class RomFile:
    """
    Opaque handle on one user-selected file.

    Either ``path`` (read lazily from disk) or ``data`` (already in memory)
    provides the content.

    Attributes:
        name: File name as shown to the user and sent to the server
        size: Size in bytes
        last_modified: Modification time in milliseconds since the epoch
        path: Optional filesystem path
        data: Optional in-memory content
    """
    name: str
    size: int
    last_modified: int = 0
    path: Optional[Path] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, file_path: Union[str, Path], name: Optional[str] = None) -> 'RomFile':
        """
        Create a handle from a filesystem path.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")
        stat = path.stat()
        return cls(
            name=name or path.name,
            size=stat.st_size,
            last_modified=int(stat.st_mtime * 1000),
            path=path,
        )

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        last_modified: Optional[int] = None
    ) -> 'RomFile':
        """Create a handle over in-memory content."""
        if last_modified is None:
            last_modified = int(time.time() * 1000)
        return cls(name=name, size=len(data), last_modified=last_modified, data=data)

    @property
    def display_size(self) -> str:
        return format_file_size(self.size)

    def __str__(self) -> str:
        location = os.fspath(self.path) if self.path else "<memory>"
        return f"{self.name} ({self.display_size}, {location})"


class CandidateStatus(str, Enum):
    """Lifecycle status of one candidate."""
    PENDING = 'pending'
    VALIDATING = 'validating'
    HASHING = 'hashing'
    DUPLICATE_CHECK = 'duplicate-check'
    NEEDS_PLATFORM_SELECTION = 'needs-platform-selection'
    READY = 'ready'
    UPLOADING = 'uploading'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    DUPLICATE = 'duplicate'
    REJECTED = 'rejected'
    DISCARDED = 'discarded'

    @property
    def is_terminal(self) -> bool:
        return self in (
            CandidateStatus.SUCCEEDED,
            CandidateStatus.FAILED,
            CandidateStatus.REJECTED,
            CandidateStatus.DISCARDED,
        )


@dataclass(frozen=True)
class Fingerprint:
    """
    Content fingerprint.

    Attributes:
        value: Hex digest
        algorithm: 'sha256' for the strong path, 'fallback32' otherwise
        is_fallback: True when derived from the weak scheme; duplicate
            matches on such fingerprints are advisory only
    """
    value: str
    algorithm: str
    is_fallback: bool = False

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Answer of the duplicate oracle for one fingerprint."""
    is_duplicate: bool
    existing_record: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DuplicateCheckResult':
        existing = data.get('existingRom', data.get('existing_record'))
        return cls(
            is_duplicate=bool(data.get('isDuplicate', data.get('is_duplicate', False))),
            existing_record=existing if isinstance(existing, dict) else None,
        )


@dataclass(frozen=True)
class PerFileResult:
    """
    Server verdict for one file of a batch.

    Attributes:
        file_name: Name the server reports (used to correlate)
        success: Whether the file was stored
        message: Optional server message
        rom_id: Id of the created record
        platform_id: Platform the file was stored under
        platform_name: Display name of that platform
        file_path: Server side storage path
    """
    file_name: str
    success: bool
    message: Optional[str] = None
    rom_id: Optional[int] = None
    platform_id: Optional[int] = None
    platform_name: Optional[str] = None
    file_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PerFileResult':
        return cls(
            file_name=str(data.get('fileName', data.get('file_name', ''))),
            success=bool(data.get('success', False)),
            message=data.get('message'),
            rom_id=data.get('romId', data.get('rom_id')),
            platform_id=data.get('platformId', data.get('platform_id')),
            platform_name=data.get('platformName', data.get('platform_name')),
            file_path=data.get('filePath', data.get('file_path')),
        )


@dataclass(frozen=True)
class BatchProgress:
    """Bytes handed to the transport for one batch so far."""
    loaded: int
    total: int

    @property
    def percentage(self) -> float:
        """Returns progress as percentage (0 when the total is unknown)."""
        if self.total <= 0:
            return 0.0
        return min(100.0, (self.loaded / self.total) * 100)


@dataclass(frozen=True)
class BatchResults:
    """Terminal event of a batch: one result per uploaded file."""
    results: Tuple[PerFileResult, ...]


BatchEvent = Union[BatchProgress, BatchResults]


@dataclass
class UploadCandidate:
    """
    One file tracked from intake to terminal status.

    Attributes:
        id: Run-local identity (file names may repeat within a run)
        file: The file handle
        status: Current lifecycle status
        fingerprint: Content fingerprint, once computed
        resolved_platform_id: Platform chosen by detection or by the user
        error: Human-readable failure reason
        detection: Latest platform detection result
        existing_record: Stored record matching this content, if any
        duplicate_override: The user chose to upload despite a duplicate
        dedup_skipped: Why duplicate detection was skipped, if it was
        result: Server verdict after upload
    """
    id: int
    file: RomFile
    status: CandidateStatus = CandidateStatus.PENDING
    fingerprint: Optional[Fingerprint] = None
    resolved_platform_id: Optional[int] = None
    error: Optional[str] = None
    detection: Optional[DetectionResult] = None
    existing_record: Optional[Dict[str, Any]] = None
    duplicate_override: bool = False
    dedup_skipped: Optional[str] = None
    result: Optional[PerFileResult] = None

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def size(self) -> int:
        return self.file.size

    def mark(self, status: CandidateStatus, error: Optional[str] = None) -> 'UploadCandidate':
        """Move to a new status, recording an error message if given."""
        self.status = status
        if error is not None:
            self.error = error
        return self

    def snapshot(self) -> 'UploadCandidate':
        """Returns a detached copy safe to hand to callers."""
        return copy.copy(self)


@dataclass
class UploadBatch:
    """
    Candidates sharing one resolved platform, uploaded in one request.

    Attributes:
        platform_id: Platform every file in the batch resolved to
        files: Candidates in intake order
    """
    platform_id: int
    files: List[UploadCandidate] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(c.size for c in self.files)

    @property
    def file_names(self) -> List[str]:
        return [c.name for c in self.files]

    def __len__(self) -> int:
        return len(self.files)


@dataclass
class PlanResult:
    """Batches built by the planner plus candidates left out of them."""
    batches: List[UploadBatch] = field(default_factory=list)
    unresolved: List[UploadCandidate] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(b.total_bytes for b in self.batches)


class RunState(str, Enum):
    """Per-run pipeline state."""
    IDLE = 'idle'
    VALIDATING = 'validating'
    HASHING_AND_DEDUP = 'hashing-and-dedup'
    AWAITING_PLATFORM_SELECTION = 'awaiting-platform-selection'
    PLANNING = 'planning'
    UPLOADING = 'uploading'
    AGGREGATING = 'aggregating'
    DONE = 'done'


class OutcomeClass(str, Enum):
    """Overall outcome of a run, used to pick the summary tone."""
    ALL_SUCCEEDED = 'all-succeeded'
    PARTIAL = 'partial'
    ALL_FAILED = 'all-failed'
    NOTHING_UPLOADED = 'nothing-uploaded'


@dataclass
class PipelineRunResult:
    """
    Aggregate outcome of one pipeline run.

    Attributes:
        succeeded: Files the server stored
        failed: Files whose upload failed
        skipped_as_duplicate: Duplicates not force-included
        rejected: Files that failed validation
        needs_platform_selection: Files left without a platform
        per_file_results: Candidate snapshots at completion
        cancelled: The run was cancelled
        overall_percentage: Final aggregate progress
    """
    succeeded: int = 0
    failed: int = 0
    skipped_as_duplicate: int = 0
    rejected: int = 0
    needs_platform_selection: int = 0
    per_file_results: List[UploadCandidate] = field(default_factory=list)
    cancelled: bool = False
    overall_percentage: float = 0.0

    @classmethod
    def from_candidates(
        cls,
        candidates: List[UploadCandidate],
        cancelled: bool = False,
        overall_percentage: float = 0.0
    ) -> 'PipelineRunResult':
        result = cls(cancelled=cancelled, overall_percentage=overall_percentage)
        for candidate in candidates:
            if candidate.status == CandidateStatus.SUCCEEDED:
                result.succeeded += 1
            elif candidate.status == CandidateStatus.FAILED:
                result.failed += 1
            elif candidate.status == CandidateStatus.DUPLICATE:
                result.skipped_as_duplicate += 1
            elif candidate.status == CandidateStatus.REJECTED:
                result.rejected += 1
            elif candidate.status == CandidateStatus.NEEDS_PLATFORM_SELECTION:
                result.needs_platform_selection += 1
            result.per_file_results.append(candidate.snapshot())
        return result

    @property
    def outcome(self) -> OutcomeClass:
        if self.succeeded and not self.failed:
            return OutcomeClass.ALL_SUCCEEDED
        if self.succeeded and self.failed:
            return OutcomeClass.PARTIAL
        if self.failed:
            return OutcomeClass.ALL_FAILED
        return OutcomeClass.NOTHING_UPLOADED

    def summary(self) -> Tuple[str, str]:
        """Returns a (title, message) pair whose tone matches the outcome."""
        outcome = self.outcome
        if outcome == OutcomeClass.ALL_SUCCEEDED:
            return (
                'Upload Completed Successfully',
                f"{self.succeeded} file(s) uploaded successfully to your ROM collection."
            )
        if outcome == OutcomeClass.PARTIAL:
            return (
                'Upload Completed with Errors',
                f"{self.succeeded} file(s) uploaded successfully, but {self.failed} file(s) failed. "
                "Please check the results below."
            )
        if outcome == OutcomeClass.ALL_FAILED:
            return (
                'Upload Failed',
                f"All {self.failed} file(s) failed to upload. Please check the results below and try again."
            )
        if self.skipped_as_duplicate:
            return (
                'No New Files to Upload',
                'All selected files are duplicates. Please remove duplicates or upload anyway.'
            )
        return ('Nothing Uploaded', 'No files were uploaded.')

    def by_status(self, status: CandidateStatus) -> List[UploadCandidate]:
        return [c for c in self.per_file_results if c.status == status]
