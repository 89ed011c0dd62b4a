"""
Upload module.

Validated, retrying, cancellable uploads to the remote asset store with
throttled progress and speed telemetry.
"""
from .models import (
    MediaKind,
    CandidateFile,
    AssetDescriptor,
    DeleteResult,
    UploadStatus,
    UploadSession,
    UploadProgress,
    InvalidTransition,
)
from .cancellation import CancelToken
from .telemetry import SpeedMeter, format_speed
from .protocols import AssetStoreProtocol, NetworkStateProtocol, ProgressCallback
from .manager import UploadManager

__all__ = [
    # Main classes
    'UploadManager',
    'CancelToken',
    'SpeedMeter',
    'format_speed',
    
    # Models
    'MediaKind',
    'CandidateFile',
    'AssetDescriptor',
    'DeleteResult',
    'UploadStatus',
    'UploadSession',
    'UploadProgress',
    'InvalidTransition',
    
    # Protocols
    'AssetStoreProtocol',
    'NetworkStateProtocol',
    'ProgressCallback',
]
