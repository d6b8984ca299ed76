"""Tests for duplicate oracles."""
import pytest
from unittest.mock import AsyncMock

from romup.core.api import Routes
from romup.core.exceptions import NetworkError
from romup.core.upload import Fingerprint
from romup.core.upload.services import HttpDuplicateOracle, InMemoryDuplicateOracle


class TestHttpDuplicateOracle:

    @pytest.fixture
    def api(self):
        api = AsyncMock()
        api.get_json = AsyncMock()
        return api

    @pytest.mark.asyncio
    async def test_duplicate(self, api):
        api.get_json.return_value = {'isDuplicate': True, 'existingRom': {'id': 12, 'title': 'Mario'}}

        result = await HttpDuplicateOracle(api).check(Fingerprint('abc', 'sha256'))

        api.get_json.assert_awaited_once_with(Routes.ROMS_CHECK_DUPLICATE, params={'hash': 'abc'})
        assert result.is_duplicate
        assert result.existing_record == {'id': 12, 'title': 'Mario'}

    @pytest.mark.asyncio
    async def test_not_duplicate(self, api):
        api.get_json.return_value = {'isDuplicate': False}

        result = await HttpDuplicateOracle(api).check(Fingerprint('abc', 'sha256'))

        assert not result.is_duplicate
        assert result.existing_record is None

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, api):
        api.get_json.return_value = ['not', 'a', 'dict']

        with pytest.raises(NetworkError):
            await HttpDuplicateOracle(api).check(Fingerprint('abc', 'sha256'))


class TestInMemoryDuplicateOracle:

    @pytest.mark.asyncio
    async def test_known_fingerprints(self):
        oracle = InMemoryDuplicateOracle.of(['aaa'])
        oracle.add('bbb', {'id': 2})

        assert (await oracle.check(Fingerprint('aaa', 'sha256'))).is_duplicate
        assert (await oracle.check(Fingerprint('bbb', 'sha256'))).existing_record == {'id': 2}
        assert not (await oracle.check(Fingerprint('ccc', 'sha256'))).is_duplicate
