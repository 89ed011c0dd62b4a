"""
Local media probes.

Image dimensions come from Pillow, video duration from ffprobe. Both run
off the event loop and raise ProbeError when the file cannot be decoded.
"""
from __future__ import annotations

import asyncio
import io
import json
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol

import aiofiles
from PIL import Image, UnidentifiedImageError

from ..exceptions import ImageTooLargeError, ProbeError
from ..logging import get_logger
from ..media import CandidateFile

logger = get_logger('mediaup.validation.probe')


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


class ProbeHost(Protocol):
    """Decodes media locally to obtain dimensions and duration."""
    
    async def probe_image(self, file: CandidateFile) -> ImageDimensions:
        """
        Decode an image.
        
        Raises:
            ProbeError: If the image cannot be decoded
        """
        ...
    
    async def probe_video(self, file: CandidateFile) -> float:
        """
        Read a video's duration in seconds.
        
        Raises:
            ProbeError: If metadata cannot be read
        """
        ...


@asynccontextmanager
async def materialize(file: CandidateFile) -> AsyncIterator[Path]:
    """
    Yield a filesystem path holding the file's content.
    
    In-memory files are written to a temporary file which is removed when
    the block exits, whichever way it exits.
    """
    if file.data is None:
        yield file.path
        return
    
    fd, name = tempfile.mkstemp(prefix='mediaup-probe-', suffix=file.suffix)
    os.close(fd)
    temp_path = Path(name)
    try:
        async with aiofiles.open(temp_path, 'wb') as f:
            await f.write(file.data)
        logger.debug(f"Materialized {file.name} at {temp_path}")
        yield temp_path
    finally:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        logger.debug(f"Released probe file {temp_path}")


class LocalProbeHost:
    """
    Probe host backed by Pillow and ffprobe.
    
    Example:
        >>> host = LocalProbeHost()
        >>> dims = await host.probe_image(CandidateFile.from_path("a.png"))
        >>> dims.width, dims.height
        (640, 480)
    """
    
    def __init__(self, ffprobe: str = 'ffprobe', timeout: float = 30.0):
        self._ffprobe = ffprobe
        self._timeout = timeout
    
    async def probe_image(self, file: CandidateFile) -> ImageDimensions:
        return await asyncio.to_thread(self._read_dimensions, file)
    
    @staticmethod
    def _read_dimensions(file: CandidateFile) -> ImageDimensions:
        source = io.BytesIO(file.data) if file.data is not None else file.path
        try:
            with Image.open(source) as img:
                width, height = img.size
                img.verify()
        except Image.DecompressionBombError as e:
            raise ImageTooLargeError(f"Image {file.name} exceeds the decoder pixel limit: {e}") from e
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ProbeError(f"Cannot decode image {file.name}: {e}") from e
        return ImageDimensions(width=width, height=height)
    
    async def probe_video(self, file: CandidateFile) -> float:
        async with materialize(file) as path:
            return await self._read_duration(path, file.name)
    
    async def _read_duration(self, path: Path, name: str) -> float:
        cmd = [
            self._ffprobe,
            '-v', 'quiet',
            '-print_format', 'json',
            '-show_format',
            str(path),
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise ProbeError(f"ffprobe unavailable: {e}") from e
        
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), self._timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ProbeError(f"ffprobe timed out reading {name}") from e
        
        if process.returncode != 0:
            raise ProbeError(f"ffprobe could not read {name} (exit {process.returncode})")
        
        return self._parse_duration(stdout, name)
    
    @staticmethod
    def _parse_duration(output: bytes, name: str) -> float:
        try:
            data = json.loads(output or b'{}')
            duration: Optional[str] = data.get('format', {}).get('duration')
            if duration is None:
                raise ProbeError(f"No duration reported for {name}")
            return float(duration)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise ProbeError(f"Unreadable ffprobe output for {name}: {e}") from e
