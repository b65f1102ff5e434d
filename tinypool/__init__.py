"""
Tinypool - batch image compression through a pool of Tinify API keys.

Each key gets its own worker thread; workers share one queue of source
files, write compressed copies into a mirrored result tree and delete the
originals. Keys that hit their quota are retired, the rest keep draining
the queue.

Usage:
    from tinypool import (
        CompressionConfig, CompressionCoordinator, FileCollector,
        FileReportWriter, TinifyClient, load_keys,
    )

    config = CompressionConfig.from_env()
    keys = load_keys(config.keys_path)
    discovery = FileCollector().collect(config.source_path)

    with TinifyClient(config.api_url) as client:
        with CompressionCoordinator(
            client,
            FileReportWriter(config.report_path),
            discovery,
            keys,
            config.result_path,
            config,
        ) as coordinator:
            coordinator.compress()
    print(coordinator.summary.compressed)
"""
from .errors import (
    AccountError,
    ClientError,
    CompressionError,
    DiscoveryError,
    FatalError,
    KeyListError,
    ResultTreeError,
    ServerError,
    ServiceConnectionError,
    TinypoolError,
)
from .models import (
    CompressedImage,
    CompressionConfig,
    CompressionSummary,
    DiscoveryResult,
    FileDescriptor,
)
from .orchestrator import CompressionCoordinator, FileCollector, ResultTracker, WorkQueue
from .services import FileReportWriter, KeyPool, TinifyClient, load_keys

__version__ = "0.1.0"
__all__ = [
    # Main
    "CompressionCoordinator",
    "FileCollector",
    "ResultTracker",
    "WorkQueue",
    # Models
    "CompressedImage",
    "CompressionConfig",
    "CompressionSummary",
    "DiscoveryResult",
    "FileDescriptor",
    # Services
    "FileReportWriter",
    "KeyPool",
    "TinifyClient",
    "load_keys",
    # Errors
    "TinypoolError",
    "FatalError",
    "KeyListError",
    "ResultTreeError",
    "DiscoveryError",
    "CompressionError",
    "AccountError",
    "ClientError",
    "ServerError",
    "ServiceConnectionError",
]
