"""Thread-safe result aggregation shared by all workers."""
import threading
from typing import Dict, Iterable, List

from ..models import CompressionSummary, FileDescriptor


class ResultTracker:
    """
    Aggregates worker outcomes.

    Every update takes the same lock, so counters and the per-key map never
    lose an increment and ``compressed == sum(files_by_key)`` holds whenever
    the lock is released.
    """

    def __init__(self, keys: Iterable[str]):
        self._lock = threading.Lock()
        self._compressed = 0
        self._dropped = 0
        self._failed_files: List[FileDescriptor] = []
        self._failed_keys: List[str] = []
        self._files_by_key: Dict[str, int] = {key: 0 for key in keys}

    def record_success(self, key: str) -> None:
        with self._lock:
            self._compressed += 1
            self._files_by_key[key] = self._files_by_key.get(key, 0) + 1

    def record_file_failure(self, descriptor: FileDescriptor) -> None:
        with self._lock:
            self._failed_files.append(descriptor)

    def record_key_failure(self, key: str) -> None:
        with self._lock:
            self._failed_keys.append(key)

    def record_drop(self, descriptor: FileDescriptor) -> None:
        # Counted only, dropped files never appear in a report
        with self._lock:
            self._dropped += 1

    @property
    def compressed_count(self) -> int:
        with self._lock:
            return self._compressed

    @property
    def failed_files(self) -> List[FileDescriptor]:
        with self._lock:
            return list(self._failed_files)

    @property
    def failed_keys(self) -> List[str]:
        with self._lock:
            return list(self._failed_keys)

    @property
    def files_by_key(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._files_by_key)

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped

    def snapshot(self, remaining: int = 0) -> CompressionSummary:
        with self._lock:
            return CompressionSummary(
                compressed=self._compressed,
                failed_files=tuple(self._failed_files),
                failed_keys=tuple(self._failed_keys),
                files_by_key=dict(self._files_by_key),
                dropped=self._dropped,
                remaining=remaining,
            )
