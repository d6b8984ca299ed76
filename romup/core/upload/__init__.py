"""
Upload module for the ROM library.

Takes a set of local files through validation, content fingerprinting,
duplicate detection and platform resolution, then uploads them in one
multipart request per platform. Every external collaborator sits behind a
protocol so it can be swapped for an in-memory implementation.
"""
from .orchestrator import PipelineOrchestrator, PipelineRun
from .planner import UploadPlanner
from .aggregator import ProgressAggregator
from .models import (
    RomFile,
    CandidateStatus,
    Fingerprint,
    DuplicateCheckResult,
    PerFileResult,
    BatchProgress,
    BatchResults,
    UploadCandidate,
    UploadBatch,
    PlanResult,
    RunState,
    OutcomeClass,
    PipelineRunResult,
)
from .protocols import (
    DuplicateOracleProtocol,
    PlatformRegistryProtocol,
    BatchUploaderProtocol,
    ContentHasherProtocol,
    FileReaderProtocol,
)

__all__ = [
    # Main classes
    'PipelineOrchestrator',
    'PipelineRun',
    'UploadPlanner',
    'ProgressAggregator',

    # Models
    'RomFile',
    'CandidateStatus',
    'Fingerprint',
    'DuplicateCheckResult',
    'PerFileResult',
    'BatchProgress',
    'BatchResults',
    'UploadCandidate',
    'UploadBatch',
    'PlanResult',
    'RunState',
    'OutcomeClass',
    'PipelineRunResult',

    # Protocols
    'DuplicateOracleProtocol',
    'PlatformRegistryProtocol',
    'BatchUploaderProtocol',
    'ContentHasherProtocol',
    'FileReaderProtocol',
]
