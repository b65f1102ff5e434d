from typing import Callable, Dict, List
import logging
import threading
logger = logging.getLogger(__name__)


class EventEmitter:
    """Simple thread-safe event emitter for compression events."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = threading.RLock()

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event."""
        with self._lock:
            listeners = self._listeners.setdefault(event_name, [])
            if callback not in listeners:
                listeners.append(callback)

    def off(self, event_name: str, callback: Callable):
        """Unsubscribe from an event."""
        with self._lock:
            if callback in self._listeners.get(event_name, []):
                self._listeners[event_name].remove(callback)

    def emit(self, event_name: str, *args, **kwargs):
        """Emit an event to all listeners, serialized across worker threads."""
        with self._lock:
            for callback in self._listeners.get(event_name, [])[:]:  # Copy list to avoid modification during iteration
                try:
                    callback(*args, **kwargs)
                except Exception as e:
                    logger.error(f"Error in event listener for {event_name}: {e}")
