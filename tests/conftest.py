"""Pytest fixtures for romup tests."""
import pytest
from Crypto.Hash import SHA256

from romup.core.platforms import Platform, StaticPlatformRegistry
from romup.core.upload import RomFile
from romup.core.upload.services import InMemoryBatchUploader, InMemoryDuplicateOracle


def _sha256_hex(data: bytes) -> str:
    return SHA256.new(data).hexdigest()


@pytest.fixture
def sha256_hex():
    """Returns the SHA-256 hex digest function the hasher should match."""
    return _sha256_hex


@pytest.fixture
def nes_platform():
    """Platform with a legacy single extension field."""
    return Platform(id=1, name="Nintendo Entertainment System", extension=".nes")


@pytest.fixture
def snes_platform():
    """Platform with a JSON encoded extension array."""
    return Platform(id=2, name="Super Nintendo", extensions='["snes", "smc"]')


@pytest.fixture
def genesis_platform():
    return Platform(id=3, name="Sega Genesis", extensions_list=("md", "bin"))


@pytest.fixture
def atari_platform():
    return Platform(id=4, name="Atari 2600", extensions=".a26, .bin")


@pytest.fixture
def platforms(nes_platform, snes_platform, genesis_platform, atari_platform):
    """Registry snapshot where '.bin' is claimed twice."""
    return [nes_platform, snes_platform, genesis_platform, atari_platform]


@pytest.fixture
def sample_platform_payload():
    """Returns a platform list as served by the API."""
    return [
        {'id': 1, 'name': 'NES', 'extension': '.nes', 'isActive': True},
        {'id': 2, 'name': 'SNES', 'extensions': '["snes", "smc"]', 'isActive': True},
        {'id': 3, 'name': 'Genesis', 'extensionsList': ['md', 'bin'], 'extensions': '["gen"]'},
        {'id': 5, 'name': 'Retired', 'extension': 'old', 'isActive': False},
    ]


@pytest.fixture
def registry(platforms):
    return StaticPlatformRegistry(platforms)


@pytest.fixture
def oracle():
    return InMemoryDuplicateOracle()


@pytest.fixture
def uploader():
    return InMemoryBatchUploader()


@pytest.fixture
def rom_dir(tmp_path):
    """Directory with a few small ROM files on disk."""
    (tmp_path / "mario.nes").write_bytes(b"NES\x1a" + b"\x00" * 60)
    (tmp_path / "zelda.sfc").write_bytes(b"\x00" * 128)
    (tmp_path / "sonic.md").write_bytes(b"SEGA" * 32)
    (tmp_path / "readme").write_bytes(b"no extension")
    return tmp_path


@pytest.fixture
def make_rom():
    """Factory for in-memory ROM files."""
    def factory(name: str, content: bytes = b"rom data", last_modified: int = 1700000000000) -> RomFile:
        return RomFile.from_bytes(name, content, last_modified=last_modified)
    return factory
