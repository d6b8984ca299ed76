"""Upload models."""
from .upload_models import (
    RomFile,
    CandidateStatus,
    Fingerprint,
    DuplicateCheckResult,
    PerFileResult,
    BatchProgress,
    BatchResults,
    BatchEvent,
    UploadCandidate,
    UploadBatch,
    PlanResult,
    RunState,
    OutcomeClass,
    PipelineRunResult,
)

__all__ = [
    'RomFile',
    'CandidateStatus',
    'Fingerprint',
    'DuplicateCheckResult',
    'PerFileResult',
    'BatchProgress',
    'BatchResults',
    'BatchEvent',
    'UploadCandidate',
    'UploadBatch',
    'PlanResult',
    'RunState',
    'OutcomeClass',
    'PipelineRunResult',
]
