"""Connectivity sources for NetworkMonitor."""
import asyncio
import time
from typing import Optional

import aiohttp

from .monitor import NetworkMonitor, NetworkState
from ..logging import get_logger


def classify_rtt(rtt_ms: float) -> str:
    """
    Map a round-trip time to an effective connection type.
    
    Thresholds follow the Network Information API's effectiveType table.
    """
    if rtt_ms >= 2000:
        return 'slow-2g'
    if rtt_ms >= 1400:
        return '2g'
    if rtt_ms >= 270:
        return '3g'
    return '4g'


class HealthCheckSource:
    """
    Polls an HTTP health endpoint to derive connectivity.
    
    Any HTTP response counts as online. Only connection errors and timeouts
    count as offline; a 5xx is a store failure for the retry path to handle.
    The round-trip time of successful probes drives the effective connection
    type.
    """
    
    def __init__(
        self,
        url: str,
        interval: float = 15.0,
        timeout: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self._url = url
        self._interval = interval
        self._timeout = timeout
        self._session = session
        self._owns_session = False
        self._task: Optional[asyncio.Task] = None
        self._monitor: Optional[NetworkMonitor] = None
        self._logger = get_logger('mediaup.network.health')
    
    def current(self) -> Optional[NetworkState]:
        # Unknown until the first probe completes
        return None
    
    async def start(self, monitor: NetworkMonitor) -> None:
        self._monitor = monitor
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        await self.check_once()
        self._task = asyncio.create_task(self._poll())
    
    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
            self._owns_session = False
    
    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.check_once()
    
    async def check_once(self) -> bool:
        """Probe the endpoint once and update the monitor. Returns online state."""
        start = time.monotonic()
        try:
            async with self._session.get(
                self._url,
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            ) as response:
                # Any HTTP answer, 5xx included, proves the store is reachable
                online = True
                self._logger.debug(f"Health check answered HTTP {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.debug(f"Health check failed: {e}")
            online = False
        rtt_ms = (time.monotonic() - start) * 1000
        
        if self._monitor is not None:
            if online:
                self._monitor.handle_online()
                self._monitor.handle_connection_change(classify_rtt(rtt_ms))
            else:
                self._monitor.handle_offline()
        return online


class StaticSource:
    """
    Fixed initial reading with manual updates.
    
    Useful for embedding applications that already receive platform
    connectivity callbacks and just forward them.
    """
    
    def __init__(self, is_online: bool = True, connection_type: str = 'unknown'):
        self._initial = NetworkState(is_online, connection_type)
    
    def current(self) -> Optional[NetworkState]:
        return self._initial
    
    async def start(self, monitor: NetworkMonitor) -> None:
        pass
    
    async def stop(self) -> None:
        pass
