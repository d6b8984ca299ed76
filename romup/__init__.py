"""
romup - Async Python client for uploading ROMs to a ROM library server.

Usage:
    >>> from romup import RomUploadClient
    >>>
    >>> async with RomUploadClient("http://localhost:5000/api") as client:
    ...     result = await client.upload(["mario.nes", "zelda.sfc"])
    ...     print(result.summary())
"""
import logging
from .client import RomUploadClient

# Configuration
from .core.api import (
    APIConfig,
    PipelineConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AsyncAPIClient,
)

# Pipeline
from .core.upload import (
    PipelineOrchestrator,
    PipelineRun,
    PipelineRunResult,
    RomFile,
    CandidateStatus,
)
from .core.platforms import Platform, PlatformDetector, DetectionResult
from .core.exceptions import RomUploadException
from .core.logging import configure_logging

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for romup modules.

    Installs a basic handler when the application has none, then sets the
    level of every romup logger.

    Args:
        level: Logging level (default: logging.INFO)
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
    configure_logging(level)


__all__ = [
    'RomUploadClient',
    'APIConfig',
    'PipelineConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AsyncAPIClient',
    'PipelineOrchestrator',
    'PipelineRun',
    'PipelineRunResult',
    'RomFile',
    'CandidateStatus',
    'Platform',
    'PlatformDetector',
    'DetectionResult',
    'RomUploadException',
    'setup_logging',
]
