"""
Platform detection.

Matches a file's extension against a registry snapshot. A platform is only
recommended when it is the single match; two consoles sharing an extension
(for example two systems that both claim ``.bin``) always need a human.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .index import PlatformExtensionIndex
from .models import Platform
from ..logging import get_logger
from ..utils import file_extension

logger = get_logger('romup.platforms.detector')


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of platform detection for one file.

    Attributes:
        file_name: Name of the inspected file
        extension: Normalized extension ('' when the name has none)
        possible_platforms: Matching platforms in registry order
        recommended_platform: The match, when exactly one platform matched
    """
    file_name: str
    extension: str
    possible_platforms: List[Platform] = field(default_factory=list)
    recommended_platform: Optional[Platform] = None

    @property
    def is_ambiguous(self) -> bool:
        return len(self.possible_platforms) > 1

    @property
    def is_unknown(self) -> bool:
        return not self.possible_platforms

    @property
    def needs_selection(self) -> bool:
        return self.recommended_platform is None


class PlatformDetector:
    """Detects candidate platforms for files by extension."""

    def detect(
        self,
        file,
        platforms: Union[PlatformExtensionIndex, Iterable[Platform], None]
    ) -> DetectionResult:
        """
        Detect possible platforms for a file.

        Args:
            file: Anything with a ``name`` attribute, or a file name
            platforms: Extension index, or a platform list (indexed on the fly)

        Returns:
            DetectionResult; never raises for missing or malformed registries
        """
        name = file if isinstance(file, str) else file.name
        extension = file_extension(name) or ''
        index = self._as_index(platforms)

        if index.is_empty():
            logger.warning(f"No platforms provided for detection: {name}")
            return DetectionResult(file_name=name, extension=extension)

        possible = index.lookup(extension) if extension else []
        recommended = possible[0] if len(possible) == 1 else None

        logger.debug(
            f"Detected {len(possible)} platform(s) for {name} (.{extension})"
            + (f", recommended {recommended.name}" if recommended else "")
        )
        return DetectionResult(
            file_name=name,
            extension=extension,
            possible_platforms=possible,
            recommended_platform=recommended,
        )

    @staticmethod
    def _as_index(platforms) -> PlatformExtensionIndex:
        if isinstance(platforms, PlatformExtensionIndex):
            return platforms
        if not platforms:
            return PlatformExtensionIndex.empty()
        return PlatformExtensionIndex(platforms)
