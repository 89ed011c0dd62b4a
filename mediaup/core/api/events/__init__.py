"""Event emitter using Observer Pattern."""
from .event_emitter import EventEmitter

__all__ = [
    'EventEmitter',
]

