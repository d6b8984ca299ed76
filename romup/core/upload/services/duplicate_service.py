"""Duplicate check service backed by the ROM library API."""
from typing import Any, Dict, Iterable, Optional

from ..models import Fingerprint, DuplicateCheckResult
from ...api import AsyncAPIClient, Routes
from ...exceptions import NetworkError
from ...logging import get_logger

logger = get_logger('romup.upload.duplicate')


class HttpDuplicateOracle:
    """Asks the server whether a fingerprint matches a stored ROM."""

    def __init__(self, api: AsyncAPIClient):
        self._api = api

    async def check(self, fingerprint: Fingerprint) -> DuplicateCheckResult:
        """
        Check one fingerprint.

        Raises:
            NetworkError: If the service cannot be reached or answers garbage
        """
        payload = await self._api.get_json(
            Routes.ROMS_CHECK_DUPLICATE,
            params={'hash': fingerprint.value}
        )
        if not isinstance(payload, dict):
            raise NetworkError("Unexpected duplicate check response", status=502)

        result = DuplicateCheckResult.from_dict(payload)
        logger.debug(f"{fingerprint.value[:16]}: duplicate={result.is_duplicate}")
        return result


class InMemoryDuplicateOracle:
    """Duplicate oracle over a fixed set of known fingerprints."""

    def __init__(self, known: Optional[Dict[str, Any]] = None):
        self._known: Dict[str, Any] = dict(known or {})

    @classmethod
    def of(cls, fingerprints: Iterable[str]) -> 'InMemoryDuplicateOracle':
        return cls({value: {'hash': value} for value in fingerprints})

    def add(self, fingerprint: str, record: Optional[Dict[str, Any]] = None) -> None:
        self._known[fingerprint] = record or {'hash': fingerprint}

    async def check(self, fingerprint: Fingerprint) -> DuplicateCheckResult:
        record = self._known.get(fingerprint.value)
        return DuplicateCheckResult(record is not None, record)
