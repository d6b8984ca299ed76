"""
Platform module.

Platform models, the per-snapshot extension index, extension based detection
and registry clients.
"""
from .models import (
    Platform,
    ExtensionSource,
    ParsedListSource,
    EncodedStringSource,
    LegacyFieldSource,
)
from .index import PlatformExtensionIndex
from .detector import PlatformDetector, DetectionResult
from .registry import HttpPlatformRegistry, StaticPlatformRegistry, parse_platforms

__all__ = [
    'Platform',
    'ExtensionSource',
    'ParsedListSource',
    'EncodedStringSource',
    'LegacyFieldSource',
    'PlatformExtensionIndex',
    'PlatformDetector',
    'DetectionResult',
    'HttpPlatformRegistry',
    'StaticPlatformRegistry',
    'parse_platforms',
]
