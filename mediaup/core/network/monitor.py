"""
Network connectivity monitor.

One NetworkMonitor is built per process (usually by MediaClient) and handed
to every consumer that gates network calls. Only the monitor mutates its
state; consumers read it or subscribe to its events.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ..api.events import EventEmitter
from ..logging import get_logger

SLOW_CONNECTION_TYPES = frozenset({'slow-2g', '2g'})
UNKNOWN_CONNECTION = 'unknown'


@dataclass(frozen=True)
class NetworkState:
    """Snapshot of connectivity."""
    is_online: bool = True
    connection_type: str = UNKNOWN_CONNECTION
    
    @property
    def is_slow(self) -> bool:
        return self.connection_type in SLOW_CONNECTION_TYPES


class ConnectivitySource(Protocol):
    """
    Platform connectivity signal.
    
    A source reports its initial reading through `current()` and pushes
    later changes into the monitor's `handle_*` methods between `start()`
    and `stop()`.
    """
    
    def current(self) -> Optional[NetworkState]:
        ...
    
    async def start(self, monitor: 'NetworkMonitor') -> None:
        ...
    
    async def stop(self) -> None:
        ...


class NetworkMonitor:
    """
    Tracks online/offline transitions and connection quality.
    
    Events (via `on`):
        'online'  - connectivity came back
        'offline' - connectivity was lost
        'change'  - connection type changed, called with the new NetworkState
        'slow'    - advisory: effective type is slow-2g or 2g
    
    Online/offline events strictly alternate; repeated reports of the
    current state are ignored.
    
    Without a source the monitor stays online with an unknown connection
    type for its whole life.
    
    Example:
        >>> async with NetworkMonitor(HealthCheckSource(url)) as monitor:
        ...     monitor.on('offline', lambda: print('lost connection'))
    """
    
    def __init__(self, source: Optional[ConnectivitySource] = None):
        self._source = source
        self._state = NetworkState()
        self._events = EventEmitter('mediaup.network.events')
        self._logger = get_logger('mediaup.network')
        self._started = False
    
    @property
    def state(self) -> NetworkState:
        return self._state
    
    @property
    def is_online(self) -> bool:
        return self._state.is_online
    
    @property
    def connection_type(self) -> str:
        return self._state.connection_type
    
    @property
    def is_slow_connection(self) -> bool:
        return self._state.is_slow
    
    @property
    def started(self) -> bool:
        return self._started
    
    def on(self, event: str, callback: Callable) -> 'NetworkMonitor':
        self._events.on(event, callback)
        return self
    
    def off(self, event: str, callback: Optional[Callable] = None) -> 'NetworkMonitor':
        self._events.off(event, callback)
        return self
    
    async def start(self) -> None:
        """Read the initial connectivity signal and subscribe to changes."""
        if self._started:
            return
        self._started = True
        if self._source is None:
            self._logger.debug("No connectivity source; assuming online")
            return
        
        initial = self._source.current()
        if initial is not None:
            self._state = initial
        self._logger.debug(
            f"Network monitor started: online={self._state.is_online}, "
            f"type={self._state.connection_type}"
        )
        await self._source.start(self)
    
    async def stop(self) -> None:
        """Unsubscribe from the connectivity source."""
        if not self._started:
            return
        self._started = False
        if self._source is not None:
            await self._source.stop()
        self._logger.debug("Network monitor stopped")
    
    async def __aenter__(self) -> 'NetworkMonitor':
        await self.start()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
    
    def handle_online(self) -> bool:
        """Record that connectivity came back. Returns False if already online."""
        if self._state.is_online:
            return False
        self._state = NetworkState(True, self._state.connection_type)
        self._logger.info("Network connection restored")
        self._events.emit('online')
        return True
    
    def handle_offline(self) -> bool:
        """Record that connectivity was lost. Returns False if already offline."""
        if not self._state.is_online:
            return False
        self._state = NetworkState(False, self._state.connection_type)
        self._logger.warning("Network connection lost")
        self._events.emit('offline')
        return True
    
    def handle_connection_change(self, effective_type: Optional[str]) -> None:
        """Record a new effective connection type ('4g', '3g', '2g', ...)."""
        connection_type = effective_type or UNKNOWN_CONNECTION
        if connection_type == self._state.connection_type:
            return
        self._state = NetworkState(self._state.is_online, connection_type)
        self._logger.debug(f"Connection type changed: {connection_type}")
        self._events.emit('change', self._state)
        
        if self._state.is_slow:
            self._logger.warning("Network connection is slow; some features may be affected")
            self._events.emit('slow', self._state)
