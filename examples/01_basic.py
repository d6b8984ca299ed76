"""
List platforms and detect where files would go
"""
import asyncio
from romup import RomUploadClient


async def main():
    async with RomUploadClient("http://localhost:5000/api") as client:

        for platform in await client.list_platforms():
            print(f"{platform.id}: {platform.name} {platform.resolve_extensions()}")

        for detection in await client.detect(["mario.nes", "data.bin", "notes.txt"]):
            if detection.recommended_platform:
                print(f"{detection.file_name} -> {detection.recommended_platform.name}")
            elif detection.is_ambiguous:
                print(f"{detection.file_name} is ambiguous: {detection.possible_platforms}")
            else:
                print(f"{detection.file_name} has no platform")


if __name__ == "__main__":
    asyncio.run(main())
