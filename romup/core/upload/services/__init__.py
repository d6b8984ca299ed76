"""Upload services module."""
from .file_service import FileValidator, ValidationResult, AsyncFileReader, MAX_FILE_SIZE
from .hash_service import ContentHasher, fallback_fingerprint
from .duplicate_service import HttpDuplicateOracle, InMemoryDuplicateOracle
from .batch_service import HttpBatchUploader, InMemoryBatchUploader, parse_batch_response

__all__ = [
    'FileValidator',
    'ValidationResult',
    'AsyncFileReader',
    'MAX_FILE_SIZE',
    'ContentHasher',
    'fallback_fingerprint',
    'HttpDuplicateOracle',
    'InMemoryDuplicateOracle',
    'HttpBatchUploader',
    'InMemoryBatchUploader',
    'parse_batch_response',
]
