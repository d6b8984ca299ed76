"""
Platform data models.

A platform advertises its file extensions in one of three encodings,
depending on which version of the server produced it:

- ``extensionsList``: an already parsed list
- ``extensions``: a JSON encoded array string (sometimes just comma separated)
- ``extension``: the legacy single extension field

The encodings are modelled as a tagged union of ExtensionSource variants and
resolved once, in priority order, when the extension index is built.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..utils import normalize_extension


@dataclass(frozen=True)
class ParsedListSource:
    """Extensions supplied as a list."""
    values: Tuple[Any, ...]
    kind: str = field(default='list', init=False)

    def extract(self) -> Tuple[str, ...]:
        return _clean(self.values)


@dataclass(frozen=True)
class EncodedStringSource:
    """
    Extensions supplied as a JSON array string.

    Falls back to splitting on commas only when the string is not valid JSON
    or does not decode to a list, so '.nes, .unf' and '["nes","unf"]' both work.
    """
    raw: str
    kind: str = field(default='json', init=False)

    def extract(self) -> Tuple[str, ...]:
        try:
            decoded = json.loads(self.raw)
        except (ValueError, TypeError):
            decoded = None
        if isinstance(decoded, list):
            return _clean(decoded)
        return _clean(self.raw.split(','))


@dataclass(frozen=True)
class LegacyFieldSource:
    """The single legacy extension field."""
    value: str
    kind: str = field(default='legacy', init=False)

    def extract(self) -> Tuple[str, ...]:
        return _clean([self.value])


ExtensionSource = Union[ParsedListSource, EncodedStringSource, LegacyFieldSource]


def _clean(values) -> Tuple[str, ...]:
    """Normalize tokens, drop empties and repeats, keep order."""
    seen: Dict[str, None] = {}
    for value in values:
        token = normalize_extension(value)
        if token:
            seen.setdefault(token, None)
    return tuple(seen)


@dataclass(frozen=True)
class Platform:
    """
    A target system that owns a set of ROM file extensions.

    Attributes:
        id: Platform identifier on the server
        name: Display name
        description: Optional description
        extension: Legacy single extension field
        extensions: JSON encoded extension array (as stored server side)
        extensions_list: Pre-parsed extension list, when the server sends one
        is_active: Whether the platform accepts uploads
    """
    id: int
    name: str
    description: Optional[str] = None
    extension: Optional[str] = None
    extensions: Optional[str] = None
    extensions_list: Optional[Tuple[Any, ...]] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Platform':
        """
        Create from an API dictionary (camelCase or snake_case keys).

        Raises:
            ValueError: If the id is missing or not an integer
        """
        raw_id = data.get('id')
        if raw_id is None or isinstance(raw_id, bool):
            raise ValueError(f"Platform has no id: {data.get('name')!r}")
        platform_id = int(raw_id)

        raw_list = data.get('extensionsList', data.get('extensions_list'))
        extensions_list = tuple(raw_list) if isinstance(raw_list, (list, tuple)) else None

        raw_extensions = data.get('extensions')
        if isinstance(raw_extensions, (list, tuple)):
            # Some servers already decode the column
            extensions_list = extensions_list or tuple(raw_extensions)
            raw_extensions = None

        return cls(
            id=platform_id,
            name=str(data.get('name') or f"Platform {platform_id}"),
            description=data.get('description'),
            extension=data.get('extension') if isinstance(data.get('extension'), str) else None,
            extensions=raw_extensions if isinstance(raw_extensions, str) else None,
            extensions_list=extensions_list,
            is_active=bool(data.get('isActive', data.get('is_active', True))),
        )

    def extension_sources(self) -> List[ExtensionSource]:
        """Returns the populated extension encodings in priority order."""
        sources: List[ExtensionSource] = []
        if self.extensions_list:
            sources.append(ParsedListSource(tuple(self.extensions_list)))
        if self.extensions and self.extensions.strip():
            sources.append(EncodedStringSource(self.extensions))
        if self.extension and self.extension.strip():
            sources.append(LegacyFieldSource(self.extension))
        return sources

    def resolve_extensions(self) -> Tuple[str, ...]:
        """
        Returns the normalized extensions of the first source that yields any.

        Never raises; an empty tuple means the platform cannot be matched.
        """
        for source in self.extension_sources():
            values = source.extract()
            if values:
                return values
        return ()

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"
