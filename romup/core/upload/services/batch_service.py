"""
Batch upload service.

Sends one platform batch as a single multipart request and exposes the
request as an async event stream: progress events while the body is being
sent, then one results event with a verdict per file.
"""
import asyncio
from typing import Any, AsyncIterator, List, Optional, Sequence
import aiohttp

from .file_service import AsyncFileReader
from ..models import RomFile, BatchEvent, BatchProgress, BatchResults, PerFileResult
from ..protocols import FileReaderProtocol
from ...api import AsyncAPIClient, Routes
from ...exceptions import NetworkError
from ...logging import get_logger

logger = get_logger('romup.upload.batch')

DEFAULT_CHUNK_SIZE = 64 * 1024


def parse_batch_response(payload: Any) -> List[PerFileResult]:
    """
    Parse the server's per-file verdicts.

    Raises:
        NetworkError: If the payload is not a list of result objects
    """
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise NetworkError("Unexpected upload response", status=502)
    return [PerFileResult.from_dict(item) for item in payload if isinstance(item, dict)]


class HttpBatchUploader:
    """
    Uploads batches to the ROM library API.

    Progress counts bytes handed to the transport, which is what the
    caller can observe; it reaches 100% before the server has answered.
    """

    def __init__(
        self,
        api: AsyncAPIClient,
        file_reader: Optional[FileReaderProtocol] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        self._api = api
        self._reader = file_reader or AsyncFileReader()
        self._chunk_size = chunk_size

    async def upload(
        self,
        files: Sequence[RomFile],
        platform_id: int
    ) -> AsyncIterator[BatchEvent]:
        """
        Upload files for one platform.

        Yields:
            BatchProgress events, then one BatchResults

        Raises:
            NetworkError: If the request fails as a whole
        """
        total = sum(f.size for f in files)
        events: asyncio.Queue = asyncio.Queue()
        sent = 0

        def on_chunk(size: int) -> None:
            nonlocal sent
            sent += size
            events.put_nowait(BatchProgress(min(sent, total), total))

        form = aiohttp.FormData()
        for file in files:
            form.add_field(
                'files',
                self._stream(file, on_chunk),
                filename=file.name,
                content_type='application/octet-stream'
            )
        form.add_field('platformId', str(platform_id))

        logger.info(f"Uploading {len(files)} file(s) ({total} bytes) for platform {platform_id}")
        request = asyncio.create_task(
            self._api.post_form(Routes.ROMS_UPLOAD_MULTIPLE, form)
        )

        try:
            while True:
                getter = asyncio.ensure_future(events.get())
                done, _ = await asyncio.wait(
                    {getter, request},
                    return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break

            while not events.empty():
                yield events.get_nowait()

            payload = request.result()
        finally:
            if not request.done():
                # Consumer stopped iterating before the request finished
                request.cancel()

        results = parse_batch_response(payload)
        logger.info(
            f"Platform {platform_id} batch finished: "
            f"{sum(1 for r in results if r.success)}/{len(results)} stored"
        )
        yield BatchResults(tuple(results))

    async def _stream(self, file: RomFile, on_chunk) -> AsyncIterator[bytes]:
        async for chunk in self._reader.iter_chunks(file, self._chunk_size):
            on_chunk(len(chunk))
            yield chunk


class InMemoryBatchUploader:
    """
    Batch uploader that accepts everything without network access.

    Emits one progress event per file. Useful for dry runs and tests.
    """

    def __init__(self, rejected: Sequence[str] = ()):
        self._rejected = set(rejected)
        self.batches: List[tuple] = []

    async def upload(
        self,
        files: Sequence[RomFile],
        platform_id: int
    ) -> AsyncIterator[BatchEvent]:
        self.batches.append((platform_id, [f.name for f in files]))
        total = sum(f.size for f in files)
        sent = 0
        for file in files:
            await asyncio.sleep(0)
            sent += file.size
            yield BatchProgress(sent, total)

        yield BatchResults(tuple(
            PerFileResult(
                file_name=f.name,
                success=f.name not in self._rejected,
                message='Rejected by server' if f.name in self._rejected else None,
                platform_id=platform_id,
            )
            for f in files
        ))
