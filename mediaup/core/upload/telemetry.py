"""Upload speed and ETA telemetry."""
import time
from typing import Callable, Optional


def format_speed(bytes_per_second: float) -> str:
    """
    Render a transfer rate with one decimal in KB/s or MB/s.
    
    Units step every 1024 bytes, which is what existing UI copy and
    telemetry strings expect:
    
        >>> format_speed(500)
        '500 B/s'
        >>> format_speed(1500)
        '1.5 KB/s'
        >>> format_speed(1500000)
        '1.4 MB/s'
    """
    if bytes_per_second < 1024:
        return f"{int(bytes_per_second)} B/s"
    if bytes_per_second < 1024 * 1024:
        return f"{bytes_per_second / 1024:.1f} KB/s"
    return f"{bytes_per_second / (1024 * 1024):.1f} MB/s"


class SpeedMeter:
    """
    Instantaneous transfer speed from successive byte-count samples.
    
    speed = delta bytes / delta time between the two most recent samples.
    """
    
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._last_bytes = 0
        self._last_time: Optional[float] = None
        self.bytes_per_second = 0.0
    
    def reset(self) -> None:
        self._last_bytes = 0
        self._last_time = None
        self.bytes_per_second = 0.0
    
    def start(self) -> None:
        self._last_bytes = 0
        self._last_time = self._clock()
        self.bytes_per_second = 0.0
    
    def sample(self, total_bytes: int) -> float:
        """Record cumulative bytes sent and return the current speed."""
        now = self._clock()
        if self._last_time is None:
            self._last_time = now
            self._last_bytes = total_bytes
            return self.bytes_per_second
        
        elapsed = now - self._last_time
        if elapsed > 0:
            self.bytes_per_second = max(0.0, (total_bytes - self._last_bytes) / elapsed)
            self._last_time = now
            self._last_bytes = total_bytes
        return self.bytes_per_second
    
    def eta(self, remaining_bytes: int) -> Optional[float]:
        """Seconds left at the current speed (None while speed is unknown)."""
        if self.bytes_per_second <= 0:
            return None
        return max(0.0, remaining_bytes / self.bytes_per_second)
