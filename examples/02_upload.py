"""
Upload media with progress and speed reporting
"""
import asyncio
from mediaup import MediaClient, FileValidationError, UploadError, setup_logging


async def main():
    setup_logging()
    
    config = MediaClient.create_config(
        "http://localhost:3000",
        auth_token="your-jwt",
        timeout=60,
        max_retries=3,
    )
    
    async with MediaClient(config=config, watch_connectivity=True) as media:
        
        def on_progress(progress):
            eta = f", {progress.eta_seconds:.0f}s left" if progress.eta_seconds else ""
            print(f"{progress.percent}% at {progress.speed_label}{eta}")
        
        try:
            asset = await media.upload("cover.jpg", "image", "articles", on_progress=on_progress)
            print(f"Uploaded: {asset.url} ({asset.public_id})")
        except FileValidationError as e:
            print(f"Not uploaded: {e.message}")
        except UploadError as e:
            print(f"Upload failed: {e.message}")
            return
        
        # Videos go to the video endpoint
        asset = await media.upload("intro.mp4", "video", "articles/videos")
        print(f"Video stored at {asset.url}")
        
        # Deleting twice is safe
        print(await media.delete(asset.public_id))
        print(await media.delete(asset.public_id))


if __name__ == "__main__":
    asyncio.run(main())
