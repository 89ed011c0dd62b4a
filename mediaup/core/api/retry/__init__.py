"""Retry strategies using Strategy Pattern."""
from .retry_strategy import (
    RetryStrategy,
    LinearBackoffStrategy,
    RetryCoordinator,
    with_retry,
)

__all__ = [
    'RetryStrategy',
    'LinearBackoffStrategy',
    'RetryCoordinator',
    'with_retry',
]
