"""
File validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
from dataclasses import dataclass
from typing import AsyncIterator, Optional
import logging
import aiofiles

from ..models import RomFile
from ...exceptions import ValidationError, FileTooLarge, MissingExtension
from ...utils import file_extension

MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one file.

    Attributes:
        valid: Whether the file may enter the pipeline
        reason: Error code ('FileTooLarge', 'MissingExtension') when invalid
        error: The matching exception, carrying the user-facing message
    """
    valid: bool
    reason: Optional[str] = None
    error: Optional[ValidationError] = None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


class FileValidator:
    """
    Validates files before upload.

    Pure function of the file's metadata; content is never read.
    Rules are applied in order and the first failure wins:
    - Size must not exceed the ceiling (2 GiB by default)
    - Name must have an extension segment
    """

    def __init__(self, max_size: int = MAX_FILE_SIZE):
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    def validate(self, file: RomFile) -> ValidationResult:
        """
        Validate a file for upload.

        Args:
            file: File handle

        Returns:
            ValidationResult; never raises
        """
        if file.size > self._max_size:
            limit_gb = self._max_size / (1024 ** 3)
            error = FileTooLarge(f"File size must be less than {limit_gb:g}GB.", file.name)
            return ValidationResult(False, error.code, error)

        if file_extension(file.name) is None:
            error = MissingExtension("File must have a valid extension.", file.name)
            return ValidationResult(False, error.code, error)

        return ValidationResult(True)

    def ensure_valid(self, file: RomFile) -> RomFile:
        """
        Validate a file, raising on failure.

        Raises:
            FileTooLarge: If file exceeds max size
            MissingExtension: If name has no extension
        """
        result = self.validate(file)
        if not result.valid:
            raise result.error
        return file


class AsyncFileReader:
    """
    Asynchronous file reader.

    Uses aiofiles for non-blocking I/O operations. In-memory files are
    served directly from their buffer.
    """

    def __init__(self):
        """Initialize file reader."""
        self._logger = logging.getLogger('romup.upload.file')

    async def read_file(self, file: RomFile) -> Optional[bytes]:
        """
        Read entire file.

        Args:
            file: File handle

        Returns:
            File data or None if reading failed
        """
        if file.data is not None:
            return file.data
        if file.path is None:
            self._logger.error(f"File has no content source: {file.name}")
            return None
        try:
            async with aiofiles.open(file.path, 'rb') as f:
                return await f.read()
        except (IOError, OSError) as e:
            self._logger.error(f"Failed to read {file.path}: {e}")
            return None

    async def iter_chunks(self, file: RomFile, chunk_size: int) -> AsyncIterator[bytes]:
        """
        Stream a file in chunks.

        Raises:
            OSError: If the file cannot be opened or read
            ValueError: If the file has no content source
        """
        if file.data is not None:
            for start in range(0, len(file.data), chunk_size):
                yield file.data[start:start + chunk_size]
            return
        if file.path is None:
            raise ValueError(f"File has no content source: {file.name}")

        async with aiofiles.open(file.path, 'rb') as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
