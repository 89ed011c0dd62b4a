"""
Data models for the upload pipeline.

Asset descriptors are frozen; an UploadSession is the only mutable record
and is owned by the UploadManager.
"""
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..cancellation import CancelToken
from ...media import CandidateFile, MediaKind


@dataclass(frozen=True)
class AssetDescriptor:
    """
    A stored asset as returned by the asset store.
    
    Attributes:
        url: Public (preferably HTTPS) URL
        public_id: Stable identifier used for deletion
        width: Pixel width, if reported
        height: Pixel height, if reported
        format: Stored format (e.g. 'jpg', 'mp4'), if reported
    """
    url: str
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    
    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'AssetDescriptor':
        """
        Map an asset store JSON body.
        
        `secure_url` wins over `url`, `publicId` over `public_id`.
        
        Raises:
            ValueError: If the URL or public id is missing
        """
        url = data.get('secure_url') or data.get('url')
        public_id = data.get('publicId') or data.get('public_id')
        if not url or not public_id:
            raise ValueError("Asset store response lacks url or public id")
        return cls(
            url=url,
            public_id=public_id,
            width=data.get('width'),
            height=data.get('height'),
            format=data.get('format'),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        result = {'url': self.url, 'publicId': self.public_id}
        if self.width is not None:
            result['width'] = self.width
        if self.height is not None:
            result['height'] = self.height
        if self.format is not None:
            result['format'] = self.format
        return result


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of an asset deletion."""
    public_id: str
    result: str  # 'ok', 'not found' or 'skipped'
    message: str = ''
    
    @property
    def deleted(self) -> bool:
        return self.result == 'ok'


class UploadStatus(str, Enum):
    """Upload session states."""
    IDLE = 'idle'
    VALIDATING = 'validating'
    TRANSMITTING = 'transmitting'
    RETRYING = 'retrying'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    
    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    UploadStatus.COMPLETED,
    UploadStatus.FAILED,
    UploadStatus.CANCELLED,
})

_TRANSITIONS = {
    UploadStatus.IDLE: {UploadStatus.VALIDATING},
    UploadStatus.VALIDATING: {UploadStatus.TRANSMITTING, UploadStatus.FAILED},
    UploadStatus.TRANSMITTING: {
        UploadStatus.COMPLETED,
        UploadStatus.RETRYING,
        UploadStatus.FAILED,
    },
    UploadStatus.RETRYING: {UploadStatus.TRANSMITTING, UploadStatus.FAILED},
}


class InvalidTransition(RuntimeError):
    """Raised on a state change the session state machine does not allow."""
    pass


@dataclass
class UploadSession:
    """
    Transient state of one upload.
    
    `advance()` is the only way the status changes; it runs synchronously so
    no other task can observe a half-applied transition.
    """
    file: CandidateFile
    kind: MediaKind
    destination_folder: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: UploadStatus = UploadStatus.IDLE
    bytes_sent: int = 0
    total_bytes: int = 0
    started_at: Optional[float] = None
    last_progress_at: Optional[float] = None
    attempt_count: int = 0
    cancel_token: CancelToken = field(default_factory=CancelToken)
    error: Optional[BaseException] = None
    result: Optional[AssetDescriptor] = None
    
    def __post_init__(self):
        if not self.total_bytes:
            self.total_bytes = self.file.size_bytes
    
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
    
    @property
    def percent(self) -> int:
        """Whole-number completion percentage of the current attempt."""
        if self.total_bytes <= 0:
            return 0
        return min(100, round(self.bytes_sent * 100 / self.total_bytes))
    
    def advance(self, status: UploadStatus) -> bool:
        """
        Move to `status`.
        
        Returns:
            False if the session was already terminal (the change is ignored)
            
        Raises:
            InvalidTransition: For a move the state machine forbids
        """
        if self.is_terminal:
            return False
        if status is UploadStatus.CANCELLED:
            self.status = status
            return True
        if status not in _TRANSITIONS.get(self.status, ()):
            raise InvalidTransition(f"{self.status.value} -> {status.value}")
        self.status = status
        if status is UploadStatus.VALIDATING and self.started_at is None:
            self.started_at = time.monotonic()
        return True


@dataclass(frozen=True)
class UploadProgress:
    """
    Progress notification handed to `on_progress`.
    
    The final notice of a cancelled session has `cancelled=True` and
    `percent=None`.
    """
    session_id: str
    percent: Optional[int]
    speed_label: str
    bytes_sent: int
    total_bytes: int
    attempt: int
    eta_seconds: Optional[float] = None
    cancelled: bool = False
