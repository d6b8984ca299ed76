"""
Platform extension index.

Read-only view over one registry snapshot that maps a normalized extension
token to the platforms claiming it, in registry order.
"""
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import Platform
from ..logging import get_logger
from ..utils import normalize_extension

logger = get_logger('romup.platforms.index')


class PlatformExtensionIndex:
    """
    Immutable extension -> platform ids index built once per snapshot.

    Building never raises: platforms whose extension fields yield nothing
    are kept in the snapshot (so they can still be chosen manually) but do
    not take part in matching.

    Example:
        >>> index = PlatformExtensionIndex([Platform(1, "NES", extension=".nes")])
        >>> [p.name for p in index.lookup("NES")]
        ['NES']
    """

    def __init__(self, platforms: Iterable[Platform] = ()):
        by_id: Dict[int, Platform] = {}
        extensions_by_id: Dict[int, Tuple[str, ...]] = {}
        index: Dict[str, List[int]] = {}

        for platform in platforms:
            if platform.id in by_id:
                logger.warning(f"Duplicate platform id {platform.id} ignored: {platform.name}")
                continue
            by_id[platform.id] = platform

            extensions = platform.resolve_extensions()
            extensions_by_id[platform.id] = extensions
            if not extensions:
                logger.debug(f"Platform {platform.name} has no valid extensions")
                continue

            for extension in extensions:
                index.setdefault(extension, []).append(platform.id)

        self._platforms = MappingProxyType(by_id)
        self._extensions_by_id = MappingProxyType(extensions_by_id)
        self._index = MappingProxyType({ext: tuple(ids) for ext, ids in index.items()})
        logger.debug(
            f"Indexed {len(self._index)} extension(s) across {len(by_id)} platform(s)"
        )

    @classmethod
    def empty(cls) -> 'PlatformExtensionIndex':
        return cls(())

    @property
    def platforms(self) -> List[Platform]:
        """Snapshot platforms in registry order."""
        return list(self._platforms.values())

    @property
    def mapping(self) -> Mapping[str, Tuple[int, ...]]:
        """Extension token -> platform ids."""
        return self._index

    def get(self, platform_id: int) -> Optional[Platform]:
        return self._platforms.get(platform_id)

    def extensions_for(self, platform_id: int) -> Tuple[str, ...]:
        return self._extensions_by_id.get(platform_id, ())

    def lookup(self, extension: str) -> List[Platform]:
        """Platforms claiming an extension (any case, dots ignored)."""
        ids = self._index.get(normalize_extension(extension), ())
        return [self._platforms[platform_id] for platform_id in ids]

    def supported_extensions(self) -> List[str]:
        """All matchable extensions, sorted."""
        return sorted(self._index)

    def is_empty(self) -> bool:
        return not self._platforms

    def __len__(self) -> int:
        return len(self._platforms)

    def __contains__(self, platform_id: object) -> bool:
        return platform_id in self._platforms
