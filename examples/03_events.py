"""
Drive a run through its events
"""
import asyncio
from romup import RomUploadClient


async def main():
    async with RomUploadClient("http://localhost:5000/api") as client:
        run = client.start_upload(["mario.nes", "zelda.sfc", "data.bin"])

        def on_duplicates(candidates):
            # Upload duplicates anyway
            for candidate in candidates:
                run.include_duplicate(candidate.id)

        def on_selection(detections):
            for detection in detections:
                if detection.possible_platforms:
                    run.assign_platform(detection.file_name, detection.possible_platforms[0].id)
                else:
                    run.discard(detection.file_name)

        run.on('state', lambda state: print(f"State: {state.value}"))
        run.on('duplicates', on_duplicates)
        run.on('selection-required', on_selection)
        run.on('batch-complete', lambda batch: print(f"Platform {batch.platform_id} done"))

        result = await run
        print(result.summary()[0])


if __name__ == "__main__":
    asyncio.run(main())
