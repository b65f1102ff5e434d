"""Shared fixtures and fakes for tinypool tests."""
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from tinypool.models import CompressedImage, CompressionConfig


class FakeCompressionClient:
    """
    In-memory ICompressionClient.

    ``validation`` maps key -> bool or exception; ``behavior`` is called as
    behavior(key, path, nth_call_for_key) and may raise or return bytes.
    """

    def __init__(
        self,
        validation: Optional[Dict[str, object]] = None,
        behavior: Optional[Callable[[str, Path, int], bytes]] = None,
    ):
        self._validation = validation or {}
        self._behavior = behavior
        self._lock = threading.Lock()
        self.validated: List[str] = []
        self.calls: List[Tuple[str, Path]] = []
        self._per_key: Dict[str, int] = {}

    def validate(self, key: str) -> bool:
        with self._lock:
            self.validated.append(key)
        result = self._validation.get(key, True)
        if isinstance(result, Exception):
            raise result
        return bool(result)

    def compress(self, key: str, path: Path) -> CompressedImage:
        with self._lock:
            self.calls.append((key, path))
            nth = self._per_key.get(key, 0) + 1
            self._per_key[key] = nth
        if self._behavior is not None:
            data = self._behavior(key, path, nth)
        else:
            data = b"small:" + path.name.encode()
        return CompressedImage(data=data, compression_count=nth)

    def calls_for(self, key: str) -> List[Path]:
        with self._lock:
            return [path for call_key, path in self.calls if call_key == key]


class RecordingReportWriter:
    """IReportWriter that keeps reports in memory."""

    def __init__(self):
        self.reports: List[Tuple[str, str]] = []

    def write(self, content: str, name: str) -> None:
        self.reports.append((name, content))

    @property
    def by_name(self) -> Dict[str, str]:
        return dict((name, content) for name, content in self.reports)


@pytest.fixture
def report_writer():
    return RecordingReportWriter()


@pytest.fixture
def config():
    return CompressionConfig(threads=4)


@pytest.fixture
def source_tree(tmp_path):
    """Source folder with images at two levels and one non-image file."""
    source = tmp_path / "source"
    (source / "albums" / "summer").mkdir(parents=True)
    (source / "empty").mkdir()
    (source / "a.png").write_bytes(b"png-a")
    (source / "b.JPG").write_bytes(b"jpg-b")
    (source / "notes.txt").write_text("not an image")
    (source / "albums" / "c.webp").write_bytes(b"webp-c")
    (source / "albums" / "summer" / "d.jpeg").write_bytes(b"jpeg-d")
    return source


def _make_images(folder: Path, count: int) -> List[Path]:
    folder.mkdir(parents=True, exist_ok=True)
    paths = []
    for index in range(count):
        path = folder / f"img_{index:03d}.png"
        path.write_bytes(f"image {index}".encode())
        paths.append(path)
    return paths


@pytest.fixture
def make_images():
    """Factory writing ``count`` small png files into a folder."""
    return _make_images


@pytest.fixture
def make_client():
    """Factory for FakeCompressionClient."""
    return FakeCompressionClient
