"""Asset store HTTP status classification."""
from typing import Dict, Optional

from ...exceptions import (
    UploadError,
    TransientTransportError,
    RemoteRejectionError,
)


class StoreErrorMessages:
    """User-facing messages for asset store HTTP statuses."""
    
    GENERIC = 'Upload failed, please try again later'
    TIMEOUT = 'Upload timed out, please check your network connection'
    OFFLINE = 'Network connection lost, please check your network and retry'
    
    MESSAGES: Dict[int, str] = {
        400: 'The asset store rejected the request',
        401: 'Authentication failed, please log in again',
        403: 'Not allowed to modify this asset',
        404: 'Asset not found',
        408: TIMEOUT,
        413: 'File too large, please choose a smaller file',
        415: 'Unsupported file format',
        429: 'Too many requests, please slow down',
    }
    
    @classmethod
    def for_status(cls, status: int) -> str:
        """Gets message for an HTTP status."""
        if status in cls.MESSAGES:
            return cls.MESSAGES[status]
        if status >= 500:
            return f"Asset store unavailable (HTTP {status})"
        return cls.GENERIC


# Request timeout and rate limiting are worth another attempt
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


def is_transient_status(status: int) -> bool:
    """True for statuses that a later attempt may succeed on."""
    return status >= 500 or status in RETRYABLE_CLIENT_STATUSES


def error_for_status(status: int, detail: Optional[str] = None) -> UploadError:
    """
    Build the exception matching an HTTP error status.
    
    Args:
        status: HTTP status code (>= 400)
        detail: Optional error body returned by the store
        
    Returns:
        TransientTransportError or RemoteRejectionError
    """
    message = StoreErrorMessages.for_status(status)
    if detail:
        message = f"{message}: {detail}"
    if is_transient_status(status):
        return TransientTransportError(message, status)
    return RemoteRejectionError(message, status)
