"""
Upload files without interaction
"""
import asyncio
from romup import RomUploadClient


async def main():
    async with RomUploadClient("http://localhost:5000/api") as client:

        # Files that match one platform go there; the rest use platform 3
        result = await client.upload(
            ["mario.nes", "sonic.md", "data.bin"],
            platform_id=3,
            progress_callback=lambda pct: print(f"Progress: {pct:.1f}%")
        )

        title, message = result.summary()
        print(title)
        print(message)
        for candidate in result.per_file_results:
            print(f"  {candidate.name}: {candidate.status.value} {candidate.error or ''}")


if __name__ == "__main__":
    asyncio.run(main())
