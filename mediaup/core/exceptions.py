"""
Custom exceptions for media admission and upload.

Validation failures, transport failures and cancellation are kept in
separate branches so callers can tell "user cancelled" from "upload failed".
"""
from enum import Enum
from typing import Optional


class MediaUpError(Exception):
    """Base exception for all mediaup errors."""
    
    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Human-readable error message
            error_code: Numeric error code (HTTP status, if available)
        """
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ValidationCategory(str, Enum):
    """Which admission constraint a file violated."""
    MISSING = 'missing'
    EMPTY = 'empty'
    SIZE = 'size'
    TYPE = 'type'
    NAME = 'name'
    DIMENSION = 'dimension'
    DURATION = 'duration'
    CORRUPT = 'corrupt'


class FileValidationError(MediaUpError):
    """A candidate file was rejected before any network activity."""
    
    def __init__(self, category: ValidationCategory, message: str) -> None:
        self.category = category
        super().__init__(message)
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, FileValidationError):
            return NotImplemented
        return self.category == other.category and self.message == other.message
    
    def __hash__(self) -> int:
        return hash((self.category, self.message))
    
    def __repr__(self) -> str:
        return f"FileValidationError({self.category.value!r}, {self.message!r})"


class ProbeError(MediaUpError):
    """Raised by a probe host when an image or video cannot be decoded."""
    pass


class ImageTooLargeError(ProbeError):
    """The image declares more pixels than the decoder will accept."""
    pass


class UploadError(MediaUpError):
    """Base exception for failed transfers to the asset store."""
    
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message, status)


class TransientTransportError(UploadError):
    """Timeout, connection reset or 5xx response. Eligible for retry."""
    pass


class OfflineError(UploadError):
    """No connectivity when an attempt was about to start. Not retried."""
    pass


class RemoteRejectionError(UploadError):
    """The asset store definitively refused the request (4xx). Not retried."""
    pass


class AssetNotFoundError(RemoteRejectionError):
    """The asset store has no asset with the requested public id."""
    
    def __init__(self, public_id: str, status: Optional[int] = 404) -> None:
        self.public_id = public_id
        super().__init__(f"Asset not found: {public_id}", status)


class UploadCancelled(MediaUpError):
    """
    The upload was cancelled by the caller.
    
    Not an UploadError, so it never matches failure handlers.
    """
    
    def __init__(self, session_id: Optional[str] = None, message: str = "Upload cancelled") -> None:
        self.session_id = session_id
        super().__init__(message)
