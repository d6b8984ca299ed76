"""
Content fingerprinting service.

Computes a SHA-256 digest over the full file content. When the digest
primitive is unavailable a weak, deterministic 32-bit fingerprint is used
instead so the pipeline keeps working; such fingerprints are flagged and
duplicate matches on them are advisory only.
"""
import asyncio
from typing import Any, Callable, Optional

from Crypto.Hash import SHA256

from .file_service import AsyncFileReader
from ..models import RomFile, Fingerprint
from ..protocols import FileReaderProtocol
from ...exceptions import HashUnavailable
from ...logging import get_logger

logger = get_logger('romup.upload.hash')

DigestFactory = Callable[[], Any]

STRONG_ALGORITHM = 'sha256'
FALLBACK_ALGORITHM = 'fallback32'
FALLBACK_SAMPLE_SIZE = 1024


def fallback_fingerprint(file: RomFile, data: bytes, sample_size: int = FALLBACK_SAMPLE_SIZE) -> str:
    """
    Weak fingerprint from file metadata and the content's head and tail.

    Joins name, size, last-modified time and the decimal byte values of
    the first and last ``sample_size`` bytes with underscores, folds the
    UTF-16 code units with ``h = h * 31 + unit`` in signed 32-bit
    arithmetic, and renders ``abs(h)`` as hex padded to 8 digits.

    Deterministic for equal (name, size, last_modified, content) tuples;
    not collision resistant.
    """
    head = data[:sample_size]
    tail = data[max(0, len(data) - sample_size):]
    combined = (
        f"{file.name}_{file.size}_{file.last_modified}_"
        f"{''.join(str(b) for b in head)}_{''.join(str(b) for b in tail)}"
    )

    encoded = combined.encode('utf-16-le')
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF

    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), 'x').zfill(8)


class ContentHasher:
    """
    Fingerprints file content.

    Example:
        >>> hasher = ContentHasher()
        >>> fp = await hasher.hash(RomFile.from_path("mario.nes"))
        >>> fp.algorithm
        'sha256'
    """

    def __init__(
        self,
        digest_factory: Optional[DigestFactory] = SHA256.new,
        file_reader: Optional[FileReaderProtocol] = None,
        sample_size: int = FALLBACK_SAMPLE_SIZE
    ):
        """
        Initialize the hasher.

        Args:
            digest_factory: Builds a fresh SHA-256 object (``update`` /
                ``hexdigest``); None means no strong primitive is available
            file_reader: Reader used to load content
            sample_size: Bytes taken from each end for the fallback
        """
        self._digest_factory = digest_factory
        self._reader = file_reader or AsyncFileReader()
        self._sample_size = sample_size

    @property
    def strong_available(self) -> bool:
        return self._digest_factory is not None

    async def hash(self, file: RomFile) -> Fingerprint:
        """
        Fingerprint a file.

        Raises:
            HashUnavailable: If the content cannot be read
        """
        data = await self._reader.read_file(file)
        if data is None:
            raise HashUnavailable(f"Failed to read file for hashing: {file.name}", file.name)

        digest = await asyncio.to_thread(self._strong_digest, data)
        if digest is not None:
            logger.debug(f"{file.name}: sha256 {digest[:16]}...")
            return Fingerprint(digest, STRONG_ALGORITHM)

        value = fallback_fingerprint(file, data, self._sample_size)
        logger.warning(f"SHA-256 unavailable, using fallback fingerprint for {file.name}")
        return Fingerprint(value, FALLBACK_ALGORITHM, is_fallback=True)

    def _strong_digest(self, data: bytes) -> Optional[str]:
        """Returns the hex digest, or None when the primitive is unavailable."""
        if self._digest_factory is None:
            return None
        try:
            digest = self._digest_factory()
            digest.update(data)
            return digest.hexdigest()
        except (ValueError, TypeError, AttributeError, NotImplementedError) as e:
            logger.warning(f"Digest primitive failed: {e}")
            return None
