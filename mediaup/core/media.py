"""
Candidate media files.

A CandidateFile is the unit handed between validation and upload.
"""
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import aiofiles


# Not present in every platform mime.types table
_EXTRA_TYPES = {
    '.webp': 'image/webp',
    '.webm': 'video/webm',
    '.mov': 'video/quicktime',
    '.avi': 'video/x-msvideo',
}


class MediaKind(str, Enum):
    """Media kinds accepted by the asset store."""
    IMAGE = 'image'
    VIDEO = 'video'
    
    @classmethod
    def coerce(cls, value: Union[str, 'MediaKind']) -> 'MediaKind':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unsupported media kind: {value!r}") from None


@dataclass(frozen=True)
class CandidateFile:
    """
    A user-selected file awaiting validation and upload.
    
    Backed either by a path on disk or by in-memory bytes. Never mutated;
    probe results (dimensions, duration) are returned separately.
    
    Attributes:
        name: File name as presented to the asset store
        size_bytes: Size in bytes
        mime_type: Declared MIME type
        path: Backing file, if any
        data: Backing bytes, if any
    
    Example:
        >>> photo = CandidateFile.from_path("cover.jpg")
        >>> photo.mime_type
        'image/jpeg'
    """
    name: str
    size_bytes: int
    mime_type: str
    path: Optional[Path] = None
    data: Optional[bytes] = field(default=None, repr=False, compare=False)
    
    def __post_init__(self):
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative, got {self.size_bytes}")
        if self.path is None and self.data is None:
            raise ValueError("CandidateFile needs a path or data")
    
    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        mime_type: Optional[str] = None,
        name: Optional[str] = None
    ) -> 'CandidateFile':
        """
        Create a candidate from a file on disk.
        
        Raises:
            FileNotFoundError: If the path does not exist
            ValueError: If the path is not a regular file
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")
        
        return cls(
            name=name if name is not None else path.name,
            size_bytes=path.stat().st_size,
            mime_type=mime_type or guess_mime_type(path.name),
            path=path,
        )
    
    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        mime_type: Optional[str] = None
    ) -> 'CandidateFile':
        """Create a candidate from in-memory bytes."""
        return cls(
            name=name,
            size_bytes=len(data),
            mime_type=mime_type or guess_mime_type(name),
            data=bytes(data),
        )
    
    @property
    def suffix(self) -> str:
        """Lower-case extension including the dot ('' if none)."""
        return Path(self.name).suffix.lower()
    
    def exists(self) -> bool:
        """True while the backing content is still available."""
        if self.data is not None:
            return True
        return self.path is not None and self.path.is_file()
    
    async def iter_chunks(self, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """Yield the file content in chunks of at most `chunk_size` bytes."""
        if self.data is not None:
            for start in range(0, len(self.data), chunk_size):
                yield self.data[start:start + chunk_size]
            return
        
        async with aiofiles.open(self.path, 'rb') as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk


def guess_mime_type(name: str) -> str:
    """Guess a MIME type from a file name."""
    suffix = Path(name).suffix.lower()
    if suffix in _EXTRA_TYPES:
        return _EXTRA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(name)
    return guessed or 'application/octet-stream'


