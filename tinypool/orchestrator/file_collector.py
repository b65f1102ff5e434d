"""File collection utilities for folder compression."""
from pathlib import Path
from typing import List

from ..errors import DiscoveryError
from ..models import DiscoveryResult, FileDescriptor

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".avif"}


def is_image(path: Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


class FileCollector:
    """Collects compressible images and the directory tree from a folder."""

    @staticmethod
    def collect_files(folder: Path) -> List[Path]:
        """
        Collect all image files recursively.

        Args:
            folder: Root folder to scan

        Returns:
            Sorted list of image file paths
        """
        files = []
        for item in folder.rglob("*"):
            if item.is_file() and is_image(item):
                files.append(item)
        return sorted(files)

    @staticmethod
    def collect_directories(folder: Path) -> List[Path]:
        """All directories under ``folder``, the folder itself first."""
        directories = [folder]
        directories.extend(sorted(item for item in folder.rglob("*") if item.is_dir()))
        return directories

    def collect(self, folder: Path) -> DiscoveryResult:
        folder = Path(folder).expanduser().absolute()
        if not folder.exists():
            raise DiscoveryError(f"Source directory does not exist: {folder}")
        if not folder.is_dir():
            raise DiscoveryError(f"Source path is not a directory: {folder}")

        try:
            files = self.collect_files(folder)
            directories = self.collect_directories(folder)
        except OSError as exc:
            raise DiscoveryError(f"Failed scanning {folder}: {exc}") from exc

        return DiscoveryResult(
            source_root=folder,
            files=tuple(FileDescriptor(path) for path in files),
            directories=tuple(directories),
        )
