"""
MediaUp - Async Python library for validated media uploads.

Admits images and videos against size, type, name, dimension and duration
constraints, uploads them to a remote asset store with progress and speed
telemetry, and survives transient failures and connectivity loss.

Usage:
    >>> from mediaup import MediaClient
    >>> 
    >>> async with MediaClient("https://api.example.com") as media:
    ...     asset = await media.upload("cover.jpg", "image", "articles")
    ...     print(asset.url)
"""
import logging
from .client import MediaClient

# Models
from .core.upload import (
    MediaKind,
    CandidateFile,
    AssetDescriptor,
    DeleteResult,
    UploadStatus,
    UploadSession,
    UploadProgress,
    UploadManager,
    CancelToken,
    format_speed,
)

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    UploadSettings,
    AssetStoreClient,
    RetryCoordinator,
    with_retry,
)

# Validation and connectivity
from .core.validation import ConstraintSet, FileValidator, LocalProbeHost
from .core.network import NetworkMonitor, NetworkState, HealthCheckSource, StaticSource

# Errors
from .core.exceptions import (
    MediaUpError,
    ValidationCategory,
    FileValidationError,
    ProbeError,
    UploadError,
    TransientTransportError,
    OfflineError,
    RemoteRejectionError,
    AssetNotFoundError,
    ImageTooLargeError,
    UploadCancelled,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for mediaup modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'mediaup',
        'mediaup.client',
        'mediaup.retry',
        'mediaup.network',
        'mediaup.validation',
        'mediaup.upload.manager',
        'mediaup.upload.store',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'MediaClient',
    'MediaKind',
    'CandidateFile',
    'AssetDescriptor',
    'DeleteResult',
    'UploadStatus',
    'UploadSession',
    'UploadProgress',
    'UploadManager',
    'CancelToken',
    'format_speed',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'UploadSettings',
    'AssetStoreClient',
    'RetryCoordinator',
    'with_retry',
    'ConstraintSet',
    'FileValidator',
    'LocalProbeHost',
    'NetworkMonitor',
    'NetworkState',
    'HealthCheckSource',
    'StaticSource',
    'MediaUpError',
    'ValidationCategory',
    'FileValidationError',
    'ProbeError',
    'UploadError',
    'TransientTransportError',
    'OfflineError',
    'RemoteRejectionError',
    'AssetNotFoundError',
    'ImageTooLargeError',
    'UploadCancelled',
    'setup_logging',
]
