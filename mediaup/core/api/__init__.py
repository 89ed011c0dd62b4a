"""Asset store API module."""
from .config import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    UploadSettings,
)
from .errors import StoreErrorMessages, error_for_status, is_transient_status
from .events import EventEmitter
from .retry import RetryStrategy, LinearBackoffStrategy, RetryCoordinator, with_retry
from .async_client import AssetStoreClient, infer_resource_type

__all__ = [
    # Client
    'AssetStoreClient',
    'infer_resource_type',
    
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'UploadSettings',
    
    # Errors
    'StoreErrorMessages',
    'error_for_status',
    'is_transient_status',
    
    # Events
    'EventEmitter',
    
    # Retry
    'RetryStrategy',
    'LinearBackoffStrategy',
    'RetryCoordinator',
    'with_retry',
]
