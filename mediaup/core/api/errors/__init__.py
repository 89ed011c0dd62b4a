"""Asset store errors and status classification."""
from .api_errors import (
    StoreErrorMessages,
    error_for_status,
    is_transient_status,
)

__all__ = [
    'StoreErrorMessages',
    'error_for_status',
    'is_transient_status',
]
