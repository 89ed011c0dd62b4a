"""
Validate images and videos before uploading
"""
import asyncio
from mediaup import MediaClient


async def main():
    async with MediaClient("http://localhost:3000") as media:
        
        # Image: size, type, name and decoded dimensions
        error = await media.validate_image_file("cover.jpg")
        if error:
            print(f"Rejected ({error.category.value}): {error.message}")
        else:
            print("cover.jpg is ready to upload")
        
        # Tighter size ceiling for avatars
        error = await media.validate_image_file("avatar.png", max_size_bytes=2 * 1024 * 1024)
        print(f"avatar.png: {error.message if error else 'ok'}")
        
        # Video: size, type, name and duration (needs ffprobe on PATH)
        error = await media.validate_video_file("intro.mp4")
        print(f"intro.mp4: {error.message if error else 'ok'}")


if __name__ == "__main__":
    asyncio.run(main())
