"""ROM library API errors and exceptions."""
from .api_errors import APIError, HTTPErrorMessages

__all__ = [
    'APIError',
    'HTTPErrorMessages',
]
