"""HTTP error messages and exceptions for the ROM library API."""
from typing import Optional

from ...exceptions import NetworkError


class HTTPErrorMessages:
    """User-facing messages for failed API calls."""

    CONNECTION_FAILED = 'Connection failed. Please check if the server is running and try again.'
    PAYLOAD_TOO_LARGE = 'File too large. Please try uploading smaller files (max 2GB).'
    SERVER_ERROR = 'Server error. Please try again later.'
    DEFAULT = 'Upload failed'

    @classmethod
    def get_message(cls, status: int, server_message: Optional[str] = None) -> str:
        """Gets error message for an HTTP status (0 = unreachable)."""
        if status == 0:
            return cls.CONNECTION_FAILED
        if status == 413:
            return cls.PAYLOAD_TOO_LARGE
        if status >= 500:
            return cls.SERVER_ERROR
        return server_message or f"{cls.DEFAULT} (HTTP {status})"


class APIError(NetworkError):
    """Exception raised for ROM library API errors."""

    def __init__(self, status: int, server_message: Optional[str] = None):
        self.server_message = server_message
        super().__init__(HTTPErrorMessages.get_message(status, server_message), status)
