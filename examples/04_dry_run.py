"""
Run the pipeline against in-memory collaborators
"""
import asyncio
from romup import PipelineOrchestrator, Platform
from romup.core.platforms import StaticPlatformRegistry
from romup.core.upload import RomFile
from romup.core.upload.services import InMemoryBatchUploader, InMemoryDuplicateOracle


async def main():
    registry = StaticPlatformRegistry([
        Platform(id=1, name="NES", extension=".nes"),
        Platform(id=2, name="SNES", extensions='["sfc", "smc"]'),
    ])
    uploader = InMemoryBatchUploader()
    orchestrator = PipelineOrchestrator(registry, InMemoryDuplicateOracle(), uploader)

    result = await orchestrator.run([
        RomFile.from_bytes("mario.nes", b"NES\x1a" + bytes(60)),
        RomFile.from_bytes("zelda.sfc", bytes(128)),
    ])
    print(result.summary())
    print(uploader.batches)


if __name__ == "__main__":
    asyncio.run(main())
