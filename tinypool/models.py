"""
Models for tinypool.

Immutable dataclasses shared by services and the orchestrator.
"""
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

MIN_THREADS = 1
MAX_THREADS = 10


@dataclass(frozen=True)
class FileDescriptor:
    """One source file pending compression."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class CompressedImage:
    """Output of one successful compression call."""
    data: bytes
    compression_count: Optional[int] = None  # monthly usage reported for the key

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class DiscoveryResult:
    """Files to compress and the directory tree to mirror."""
    source_root: Path
    files: Tuple[FileDescriptor, ...] = ()
    directories: Tuple[Path, ...] = ()

    @property
    def total_files(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class CompressionSummary:
    """Final accounting of a compression run."""
    compressed: int
    failed_files: Tuple[FileDescriptor, ...]
    failed_keys: Tuple[str, ...]
    files_by_key: Dict[str, int] = field(default_factory=dict)
    dropped: int = 0
    remaining: int = 0  # files never dequeued (all keys exhausted or cancelled)

    @property
    def success(self) -> bool:
        return not self.failed_files and self.dropped == 0 and self.remaining == 0

    @property
    def active_keys(self) -> List[str]:
        return [key for key in self.files_by_key if key not in self.failed_keys]


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer")
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not a number")
        return default


@dataclass(frozen=True)
class CompressionConfig:
    """Immutable configuration for a compression run."""
    source_dir: str = "source"
    result_dir: str = "result"
    report_dir: str = "reports"
    keys_file: str = "keys.txt"
    threads: int = 4
    api_url: str = "https://api.tinify.com"
    timeout: float = 60.0
    # Report names, prefixed with a timestamp by the report writer
    count_compressed_report: str = "count_compressed.txt"
    failed_files_report: str = "failed_files.txt"
    failed_keys_report: str = "failed_keys.txt"
    files_by_key_report: str = "files_by_key.txt"

    @classmethod
    def from_env(cls) -> "CompressionConfig":
        """Build a config from TINYPOOL_* environment variables."""
        defaults = cls()
        config = cls(
            source_dir=os.getenv("TINYPOOL_SOURCE_DIR", defaults.source_dir),
            result_dir=os.getenv("TINYPOOL_RESULT_DIR", defaults.result_dir),
            report_dir=os.getenv("TINYPOOL_REPORT_DIR", defaults.report_dir),
            keys_file=os.getenv("TINYPOOL_KEYS_FILE", defaults.keys_file),
            api_url=os.getenv("TINYPOOL_API_URL", defaults.api_url),
            timeout=_env_float("TINYPOOL_TIMEOUT", defaults.timeout),
        )
        return config.with_threads(_env_int("TINYPOOL_THREADS", defaults.threads))

    def with_threads(self, value) -> "CompressionConfig":
        """Return a copy using ``value`` threads, keeping the current count if out of range."""
        try:
            threads = int(value)
        except (TypeError, ValueError):
            logger.info(f"Invalid thread count {value!r}, using {self.threads}")
            return self
        if not MIN_THREADS <= threads <= MAX_THREADS:
            logger.info(
                f"Thread count {threads} outside {MIN_THREADS}..{MAX_THREADS}, using {self.threads}"
            )
            return self
        return replace(self, threads=threads)

    def resolve(self, value: str, base: Optional[Path] = None) -> Path:
        """Resolve a configured path against ``base`` (default: working directory)."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return (base or Path.cwd()) / path

    @property
    def source_path(self) -> Path:
        return self.resolve(self.source_dir)

    @property
    def result_path(self) -> Path:
        return self.resolve(self.result_dir)

    @property
    def report_path(self) -> Path:
        return self.resolve(self.report_dir)

    @property
    def keys_path(self) -> Path:
        return self.resolve(self.keys_file)
