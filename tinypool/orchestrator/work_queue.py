"""Shared pending-file queue."""
import threading
from collections import deque
from typing import Deque, Iterable, Optional

from ..models import FileDescriptor


class WorkQueue:
    """
    Thread-safe FIFO of files waiting for compression.

    ``poll`` hands each descriptor to exactly one caller and never blocks:
    an empty queue returns None so the worker can stop.
    """

    def __init__(self, files: Iterable[FileDescriptor] = ()):
        self._items: Deque[FileDescriptor] = deque(files)
        self._lock = threading.Lock()

    def poll(self) -> Optional[FileDescriptor]:
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def push_back(self, descriptor: FileDescriptor) -> None:
        """Return an untouched descriptor to the head of the queue."""
        with self._lock:
            self._items.appendleft(descriptor)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
