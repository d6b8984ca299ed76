"""Tests for the HTTP client and services against a local aiohttp server."""
import contextlib
import json

import pytest
from aiohttp import web
from aiohttp import test_utils

from romup.core.api import APIConfig, AsyncAPIClient, Routes
from romup.core.api.errors import APIError, HTTPErrorMessages
from romup.core.exceptions import NetworkError
from romup.core.platforms import HttpPlatformRegistry
from romup.core.upload import BatchProgress, BatchResults, Fingerprint, RomFile
from romup.core.upload.services import HttpBatchUploader, HttpDuplicateOracle, parse_batch_response


async def read_upload(request):
    """Reads a multipart upload into (file names and sizes, platform id)."""
    reader = await request.multipart()
    files = []
    platform_id = None
    while True:
        part = await reader.next()
        if part is None:
            break
        if part.name == 'files':
            data = await part.read()
            files.append((part.filename, len(data)))
        elif part.name == 'platformId':
            platform_id = int(await part.text())
    return files, platform_id


def build_app(state):
    async def platforms(request):
        return web.json_response([{'id': 1, 'name': 'NES', 'extension': 'nes'}])

    async def check_duplicate(request):
        state['hashes'].append(request.query.get('hash'))
        return web.json_response({'isDuplicate': request.query.get('hash') == 'known'})

    async def upload_multiple(request):
        files, platform_id = await read_upload(request)
        state['uploads'].append((files, platform_id))
        if platform_id == 99:
            return web.json_response({'message': 'Platform not found'}, status=400)
        if platform_id == 500:
            return web.Response(status=500, text='Internal error')
        return web.json_response([
            {'fileName': name, 'success': size > 0, 'message': None if size else 'Empty file',
             'platformId': platform_id, 'platformName': 'NES'}
            for name, size in files
        ])

    async def broken_json(request):
        return web.Response(text='{not json', content_type='application/json')

    async def too_large(request):
        return web.Response(status=413)

    app = web.Application()
    app.router.add_get('/api/' + Routes.PLATFORMS_ACTIVE, platforms)
    app.router.add_get('/api/' + Routes.ROMS_CHECK_DUPLICATE, check_duplicate)
    app.router.add_post('/api/' + Routes.ROMS_UPLOAD_MULTIPLE, upload_multiple)
    app.router.add_get('/api/broken', broken_json)
    app.router.add_get('/api/too-large', too_large)
    return app


@contextlib.asynccontextmanager
async def running_api():
    """Yields (api client, server state) for a local test server."""
    state = {'hashes': [], 'uploads': []}
    server = test_utils.TestServer(build_app(state))
    await server.start_server()
    try:
        config = APIConfig(base_url=str(server.make_url('/api')))
        async with AsyncAPIClient(config) as api:
            yield api, state
    finally:
        await server.close()


class TestAsyncAPIClient:

    @pytest.mark.asyncio
    async def test_get_json(self):
        async with running_api() as (api, _):
            payload = await api.get_json(Routes.PLATFORMS_ACTIVE)

        assert payload[0]['name'] == 'NES'

    @pytest.mark.asyncio
    async def test_emits_request_events(self):
        seen = []
        async with running_api() as (api, _):
            api.on('response', lambda method, url, status: seen.append((method, status)))
            await api.get_json(Routes.PLATFORMS_ACTIVE)

        assert seen == [('GET', 200)]

    @pytest.mark.asyncio
    async def test_payload_too_large(self):
        async with running_api() as (api, _):
            with pytest.raises(APIError) as exc_info:
                await api.get_json('too-large')

        assert exc_info.value.status == 413
        assert exc_info.value.message == HTTPErrorMessages.PAYLOAD_TOO_LARGE

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with running_api() as (api, _):
            with pytest.raises(APIError) as exc_info:
                await api.get_json('broken')

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        server = test_utils.TestServer(web.Application())
        await server.start_server()
        url = str(server.make_url('/api'))
        await server.close()

        async with AsyncAPIClient(APIConfig(base_url=url)) as api:
            with pytest.raises(NetworkError) as exc_info:
                await api.get_json(Routes.PLATFORMS_ACTIVE)

        assert exc_info.value.status == 0
        assert exc_info.value.message == HTTPErrorMessages.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_closed_client(self):
        api = AsyncAPIClient()
        await api.close()

        assert api.closed
        with pytest.raises(APIError):
            await api.get_json(Routes.PLATFORMS_ACTIVE)


class TestHttpServices:

    @pytest.mark.asyncio
    async def test_registry(self):
        async with running_api() as (api, _):
            platforms = await HttpPlatformRegistry(api).list_active()

        assert [p.resolve_extensions() for p in platforms] == [('nes',)]

    @pytest.mark.asyncio
    async def test_duplicate_oracle_sends_hash(self):
        async with running_api() as (api, state):
            oracle = HttpDuplicateOracle(api)
            known = await oracle.check(Fingerprint('known', 'sha256'))
            fresh = await oracle.check(Fingerprint('fresh', 'sha256'))

        assert known.is_duplicate and not fresh.is_duplicate
        assert state['hashes'] == ['known', 'fresh']


class TestHttpBatchUploader:

    @pytest.mark.asyncio
    async def test_upload_streams_progress_then_results(self):
        files = [
            RomFile.from_bytes('mario.nes', b'\x01' * 200_000),
            RomFile.from_bytes('empty.nes', b''),
        ]

        async with running_api() as (api, state):
            uploader = HttpBatchUploader(api, chunk_size=64 * 1024)
            events = [event async for event in uploader.upload(files, 1)]

        progress = [e for e in events if isinstance(e, BatchProgress)]
        assert progress
        assert progress[-1].loaded == progress[-1].total == 200_000
        assert [p.loaded for p in progress] == sorted(p.loaded for p in progress)

        assert isinstance(events[-1], BatchResults)
        results = {r.file_name: r for r in events[-1].results}
        assert results['mario.nes'].success
        assert not results['empty.nes'].success
        assert results['empty.nes'].message == 'Empty file'

        assert state['uploads'] == [([('mario.nes', 200_000), ('empty.nes', 0)], 1)]

    @pytest.mark.asyncio
    async def test_upload_client_error(self):
        async with running_api() as (api, _):
            uploader = HttpBatchUploader(api)
            with pytest.raises(NetworkError) as exc_info:
                async for _ in uploader.upload([RomFile.from_bytes('a.nes', b'a')], 99):
                    pass

        assert exc_info.value.message == 'Platform not found'

    @pytest.mark.asyncio
    async def test_upload_server_error(self):
        async with running_api() as (api, _):
            uploader = HttpBatchUploader(api)
            with pytest.raises(NetworkError) as exc_info:
                async for _ in uploader.upload([RomFile.from_bytes('a.nes', b'a')], 500):
                    pass

        assert exc_info.value.status == 500
        assert exc_info.value.message == HTTPErrorMessages.SERVER_ERROR


class TestParseBatchResponse:

    def test_single_object(self):
        results = parse_batch_response({'fileName': 'a.nes', 'success': True})

        assert [r.file_name for r in results] == ['a.nes']

    def test_skips_non_objects(self):
        assert len(parse_batch_response([{'fileName': 'a.nes'}, 'junk'])) == 1

    def test_rejects_garbage(self):
        with pytest.raises(NetworkError):
            parse_batch_response(json.dumps([]))
