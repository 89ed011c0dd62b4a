"""
Cancel an upload in progress and watch connectivity
"""
import asyncio
from mediaup import MediaClient, UploadCancelled


async def main():
    async with MediaClient("http://localhost:3000", watch_connectivity=True) as media:
        
        media.network.on('offline', lambda: print("Offline: uploads will fail fast"))
        media.network.on('online', lambda: print("Back online"))
        media.network.on('slow', lambda state: print(f"Slow connection ({state.connection_type})"))
        
        session = media.create_session("long_clip.mp4", "video")
        task = asyncio.create_task(media.upload(session))
        
        await asyncio.sleep(2)
        media.cancel(session.id)
        
        try:
            await task
        except UploadCancelled:
            print(f"Upload {session.id} cancelled ({session.status.value})")


if __name__ == "__main__":
    asyncio.run(main())
