"""
Error taxonomy.

Fatal errors stop the run before any worker starts. Compression errors are
raised by the compression client and classified by the worker loop:

- AccountError: the key is exhausted (quota reached or unauthorized)
- ClientError: the file was rejected, the key is still usable
- ServerError / ServiceConnectionError: transient, the file is dropped
"""
from typing import Optional


class TinypoolError(RuntimeError):
    """Base class for all tinypool errors."""


class FatalError(TinypoolError):
    """Unrecoverable setup failure, the process must exit non-zero."""


class KeyListError(FatalError):
    """Keys file is missing, unreadable or empty."""


class ResultTreeError(FatalError):
    """Mirrored result directory tree could not be created."""


class DiscoveryError(FatalError):
    """Source directory cannot be scanned."""


class CompressionError(TinypoolError):
    """Failure reported by the compression service."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AccountError(CompressionError):
    """Key is unauthorized or its monthly quota is exhausted."""


class ClientError(CompressionError):
    """Request was rejected (bad input, unsupported file)."""


class ServerError(CompressionError):
    """Upstream service failed or answered unexpectedly."""


class ServiceConnectionError(CompressionError):
    """Network-level failure talking to the service."""
