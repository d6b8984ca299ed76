"""
Custom exceptions for the ROM upload pipeline.

Validation and platform errors are per-file; network errors are per-file
(duplicate check) or per-batch (upload). None of them abort a pipeline run.
"""
from typing import Optional


class RomUploadException(Exception):
    """Base exception for all romup errors."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            code: Short machine-readable error code (if available)
        """
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


class ValidationError(RomUploadException):
    """A file failed local validation and will not be processed."""

    def __init__(self, message: str, file_name: Optional[str] = None) -> None:
        self.file_name = file_name
        super().__init__(message)


class FileTooLarge(ValidationError):
    """File exceeds the maximum upload size."""
    pass


class MissingExtension(ValidationError):
    """File name has no extension segment."""
    pass


class HashUnavailable(RomUploadException):
    """File content could not be read for fingerprinting."""

    def __init__(self, message: str, file_name: Optional[str] = None) -> None:
        self.file_name = file_name
        super().__init__(message)


class PlatformSelectionError(RomUploadException):
    """A file needs an explicit platform choice, or the choice is invalid."""

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        platform_id: Optional[int] = None
    ) -> None:
        self.file_name = file_name
        self.platform_id = platform_id
        super().__init__(message)


class PlatformAmbiguous(PlatformSelectionError):
    """More than one platform claims the file's extension."""
    pass


class PlatformUnknown(PlatformSelectionError):
    """No platform claims the file's extension, or the id is not known."""
    pass


class NetworkError(RomUploadException):
    """
    Exception raised for HTTP and transport failures.

    Attributes:
        status: HTTP status code; 0 when the server could not be reached
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)


class PipelineCancelled(RomUploadException):
    """Raised inside a run when its cancellation signal is set."""

    def __init__(self, message: str = "Run cancelled") -> None:
        super().__init__(message)
