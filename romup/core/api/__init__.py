"""
ROM library API module.

Provides the async HTTP client and its configuration.
"""
from .config import (
    APIConfig,
    PipelineConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    Routes,
)
from .async_client import AsyncAPIClient
from .errors import APIError, HTTPErrorMessages
from .events import EventEmitter

__all__ = [
    'APIConfig',
    'PipelineConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'Routes',
    'AsyncAPIClient',
    'APIError',
    'HTTPErrorMessages',
    'EventEmitter',
]
