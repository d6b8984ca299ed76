"""
Protocol definitions for upload module.

Defines the boundaries the pipeline calls (duplicate oracle, platform
registry, batch uploader) and its pluggable local services, so each can be
swapped for an in-memory implementation in tests.
"""
from typing import Protocol, AsyncIterator, List, Optional, Sequence

from .models import (
    RomFile,
    Fingerprint,
    DuplicateCheckResult,
    BatchEvent,
)
from ..platforms.models import Platform


class DuplicateOracleProtocol(Protocol):
    """Reports whether content with a given fingerprint is already stored."""

    async def check(self, fingerprint: Fingerprint) -> DuplicateCheckResult:
        """
        Look up a fingerprint.

        Args:
            fingerprint: Content fingerprint

        Returns:
            Duplicate verdict with the existing record, if any

        Raises:
            NetworkError: If the service cannot be reached
        """
        ...


class PlatformRegistryProtocol(Protocol):
    """Supplies the active platform list."""

    async def list_active(self) -> List[Platform]:
        """
        Fetch one snapshot of the active platforms.

        Raises:
            NetworkError: If the registry cannot be reached
        """
        ...


class BatchUploaderProtocol(Protocol):
    """Uploads one platform batch as a single request."""

    def upload(
        self,
        files: Sequence[RomFile],
        platform_id: int
    ) -> AsyncIterator[BatchEvent]:
        """
        Upload files and stream the request's lifecycle.

        Yields zero or more BatchProgress events followed by exactly one
        BatchResults event carrying a result per file.

        Args:
            files: Files to send
            platform_id: Platform all files belong to

        Raises:
            NetworkError: If the request fails as a whole
        """
        ...


class ContentHasherProtocol(Protocol):
    """Computes content fingerprints."""

    async def hash(self, file: RomFile) -> Fingerprint:
        """
        Fingerprint a file's content.

        Raises:
            HashUnavailable: If the content cannot be read
        """
        ...


class FileReaderProtocol(Protocol):
    """Protocol for file reading operations."""

    async def read_file(self, file: RomFile) -> Optional[bytes]:
        """
        Read a file's whole content.

        Returns:
            File data or None if reading failed
        """
        ...

    def iter_chunks(self, file: RomFile, chunk_size: int) -> AsyncIterator[bytes]:
        """Stream a file's content in chunks."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logger objects."""

    def debug(self, msg: str) -> None: ...
    def info(self, msg: str) -> None: ...
    def warning(self, msg: str) -> None: ...
    def error(self, msg: str) -> None: ...
