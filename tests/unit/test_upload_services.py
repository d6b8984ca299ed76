"""Tests for upload services."""
import pytest
from pathlib import Path

from romup.core.exceptions import FileTooLarge, MissingExtension
from romup.core.upload import RomFile
from romup.core.upload.services import FileValidator, AsyncFileReader, MAX_FILE_SIZE


class TestFileValidator:
    """Test suite for FileValidator."""

    @pytest.fixture
    def validator(self):
        """Create validator instance."""
        return FileValidator()

    def test_valid_file(self, validator):
        result = validator.validate(RomFile(name='mario.nes', size=40960))

        assert result.valid
        assert result.message is None

    def test_exactly_max_size_is_valid(self, validator):
        assert validator.validate(RomFile(name='big.iso', size=MAX_FILE_SIZE)).valid

    def test_too_large(self, validator):
        result = validator.validate(RomFile(name='big.iso', size=MAX_FILE_SIZE + 1))

        assert not result.valid
        assert result.reason == 'FileTooLarge'
        assert result.message == 'File size must be less than 2GB.'

    def test_missing_extension(self, validator):
        result = validator.validate(RomFile(name='README', size=10))

        assert not result.valid
        assert result.reason == 'MissingExtension'
        assert result.message == 'File must have a valid extension.'

    def test_size_checked_before_extension(self, validator):
        result = validator.validate(RomFile(name='README', size=MAX_FILE_SIZE + 1))

        assert result.reason == 'FileTooLarge'

    def test_custom_limit(self):
        validator = FileValidator(max_size=100)

        assert validator.max_size == 100
        assert not validator.validate(RomFile(name='a.nes', size=101)).valid

    def test_ensure_valid_raises(self, validator):
        with pytest.raises(MissingExtension):
            validator.ensure_valid(RomFile(name='noext', size=1))
        with pytest.raises(FileTooLarge):
            validator.ensure_valid(RomFile(name='a.iso', size=MAX_FILE_SIZE + 1))

    def test_ensure_valid_returns_file(self, validator):
        file = RomFile(name='a.nes', size=1)

        assert validator.ensure_valid(file) is file


class TestAsyncFileReader:
    """Test suite for AsyncFileReader."""

    @pytest.fixture
    def reader(self):
        """Create reader instance."""
        return AsyncFileReader()

    @pytest.fixture
    def temp_file(self, tmp_path):
        """Create temporary file with known content."""
        path = tmp_path / "rom.bin"
        path.write_bytes(b"0123456789ABCDEFGHIJ")  # 20 bytes
        return path

    @pytest.mark.asyncio
    async def test_read_entire_file(self, reader, temp_file):
        data = await reader.read_file(RomFile.from_path(temp_file))

        assert data == b"0123456789ABCDEFGHIJ"

    @pytest.mark.asyncio
    async def test_read_in_memory(self, reader):
        assert await reader.read_file(RomFile.from_bytes('a.nes', b'xyz')) == b'xyz'

    @pytest.mark.asyncio
    async def test_read_nonexistent_file(self, reader):
        """Test reading non-existent file returns None."""
        file = RomFile(name='gone.nes', size=10, path=Path("/nonexistent/gone.nes"))

        assert await reader.read_file(file) is None

    @pytest.mark.asyncio
    async def test_read_without_source(self, reader):
        assert await reader.read_file(RomFile(name='empty.nes', size=0)) is None

    @pytest.mark.asyncio
    async def test_iter_chunks(self, reader, temp_file):
        chunks = [c async for c in reader.iter_chunks(RomFile.from_path(temp_file), 8)]

        assert chunks == [b"01234567", b"89ABCDEF", b"GHIJ"]

    @pytest.mark.asyncio
    async def test_iter_chunks_in_memory(self, reader):
        chunks = [c async for c in reader.iter_chunks(RomFile.from_bytes('a.nes', b'abcde'), 2)]

        assert chunks == [b'ab', b'cd', b'e']

    @pytest.mark.asyncio
    async def test_iter_chunks_without_source(self, reader):
        with pytest.raises(ValueError):
            async for _ in reader.iter_chunks(RomFile(name='x.nes', size=1), 4):
                pass
