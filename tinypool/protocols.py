"""
Protocols (Interfaces) for Dependency Inversion.

The coordinator only depends on these; concrete adapters live in services.
"""
from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import CompressedImage


@runtime_checkable
class ICompressionClient(Protocol):
    """Interface for the external compression service."""

    def validate(self, key: str) -> bool:
        """Check that the service recognizes ``key``."""
        ...

    def compress(self, key: str, path: Path) -> CompressedImage:
        """Compress one file using ``key``; raises CompressionError subclasses."""
        ...


@runtime_checkable
class IReportWriter(Protocol):
    """Interface for the report sink. Must never raise."""

    def write(self, content: str, name: str) -> None:
        """Persist ``content`` under the logical report ``name``."""
        ...
