"""Per-kind admission constraints."""
from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Union

from ..media import MediaKind

MB = 1024 * 1024

IMAGE_MIME_TYPES = frozenset({
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/webp',
})

VIDEO_MIME_TYPES = frozenset({
    'video/mp4',
    'video/webm',
    'video/x-msvideo',  # avi
    'video/quicktime',  # mov
})

MAX_FILENAME_LENGTH = 255


@dataclass(frozen=True)
class ConstraintSet:
    """
    Admission constraints for one media kind.
    
    Attributes:
        kind: Media kind the constraints apply to
        max_size_bytes: Inclusive upper bound on file size
        allowed_mime_types: Accepted MIME types
        min_dimension: Minimum width and height in pixels (images)
        max_dimension: Maximum width and height in pixels (images)
        max_duration_seconds: Maximum playtime (videos)
    """
    kind: MediaKind
    max_size_bytes: int
    allowed_mime_types: FrozenSet[str]
    min_dimension: Optional[int] = None
    max_dimension: Optional[int] = None
    max_duration_seconds: Optional[float] = None
    
    @classmethod
    def image(cls, max_size_bytes: int = 10 * MB) -> 'ConstraintSet':
        return cls(
            kind=MediaKind.IMAGE,
            max_size_bytes=max_size_bytes,
            allowed_mime_types=IMAGE_MIME_TYPES,
            min_dimension=100,
            max_dimension=4000,
        )
    
    @classmethod
    def video(cls, max_size_bytes: int = 100 * MB) -> 'ConstraintSet':
        return cls(
            kind=MediaKind.VIDEO,
            max_size_bytes=max_size_bytes,
            allowed_mime_types=VIDEO_MIME_TYPES,
            max_duration_seconds=300,
        )
    
    @classmethod
    def for_kind(cls, kind: Union[str, MediaKind]) -> 'ConstraintSet':
        """Default constraints for a media kind."""
        kind = MediaKind.coerce(kind)
        if kind is MediaKind.IMAGE:
            return cls.image()
        return cls.video()
    
    def with_max_size(self, max_size_bytes: Optional[int]) -> 'ConstraintSet':
        """Copy with a caller-supplied size ceiling (None keeps the default)."""
        if max_size_bytes is None:
            return self
        return replace(self, max_size_bytes=max_size_bytes)
    
    @property
    def max_size_label(self) -> str:
        """Size ceiling in MB for messages ('10', '2.5')."""
        return f"{self.max_size_bytes / MB:g}"
