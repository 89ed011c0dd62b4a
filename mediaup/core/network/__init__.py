"""Network connectivity monitoring."""
from .monitor import (
    NetworkMonitor,
    NetworkState,
    ConnectivitySource,
    SLOW_CONNECTION_TYPES,
)
from .sources import HealthCheckSource, StaticSource, classify_rtt

__all__ = [
    'NetworkMonitor',
    'NetworkState',
    'ConnectivitySource',
    'SLOW_CONNECTION_TYPES',
    'HealthCheckSource',
    'StaticSource',
    'classify_rtt',
]
