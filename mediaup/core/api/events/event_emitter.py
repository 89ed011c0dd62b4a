"""Event emitter implementation using Observer Pattern."""
from typing import Dict, List, Callable, Optional

from ...logging import get_logger


class EventEmitter:
    """
    Event emitter using Observer Pattern.
    
    A listener that raises is logged and the remaining listeners still run,
    so one faulty UI binding cannot stall a state broadcast.
    """
    
    def __init__(self, logger_name: str = 'mediaup.events'):
        """Initializes event emitter."""
        self._events: Dict[str, List[Callable]] = {}
        self._logger = get_logger(logger_name)
    
    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers an event handler."""
        self._events.setdefault(event, []).append(callback)
        return self
    
    def once(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers a handler that is removed after its first call."""
        def wrapper(*args, **kwargs):
            self.off(event, wrapper)
            callback(*args, **kwargs)
        return self.on(event, wrapper)
    
    def emit(self, event: str, *args, **kwargs) -> int:
        """Emits an event. Returns the number of handlers invoked."""
        callbacks = list(self._events.get(event, ()))
        for callback in callbacks:
            try:
                callback(*args, **kwargs)
            except Exception:
                self._logger.exception(f"Listener for '{event}' failed")
        return len(callbacks)
    
    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Removes an event handler (all handlers for the event if none given)."""
        if event not in self._events:
            return self
        
        if callback is None:
            del self._events[event]
        else:
            self._events[event] = [cb for cb in self._events[event] if cb != callback]
        
        return self
    
    def listener_count(self, event: str) -> int:
        """Number of handlers registered for an event."""
        return len(self._events.get(event, ()))
