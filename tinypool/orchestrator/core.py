"""Core orchestrator - coordinates key-bound compression workers."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..errors import (
    AccountError,
    ClientError,
    CompressionError,
    ResultTreeError,
)
from ..models import CompressionConfig, CompressionSummary, DiscoveryResult, FileDescriptor
from ..protocols import ICompressionClient, IReportWriter
from ..services.keys import mask_key
from ..utils.events import EventEmitter
from .tracker import ResultTracker
from .work_queue import WorkQueue

logger = logging.getLogger(__name__)


class CompressionCoordinator:
    """
    Drains a shared file queue with one worker per API key.

    Each worker validates its key, then pulls files until the queue is empty
    or the key is exhausted. Failures are classified per file:

    - AccountError: key goes to failed keys, the file goes back to the
      queue, worker stops
    - ClientError / OSError: file goes to failed files, worker continues
    - any other CompressionError: logged and dropped, worker continues
    - anything else: treated like an exhausted key so the failure is reported

    Usage:
        with CompressionCoordinator(client, writer, discovery, keys, result_root) as coordinator:
            coordinator.compress()
        summary = coordinator.summary

    Events (via ``on``): file_compressed, file_failed, file_dropped, key_exhausted.
    """

    def __init__(
        self,
        client: ICompressionClient,
        report_writer: IReportWriter,
        discovery: DiscoveryResult,
        keys: Iterable[str],
        result_root: Path,
        config: Optional[CompressionConfig] = None,
    ):
        self._client = client
        self._report_writer = report_writer
        self._discovery = discovery
        self._keys: List[str] = list(keys)
        self._result_root = Path(result_root)
        self._config = config or CompressionConfig()

        self._queue = WorkQueue(discovery.files)
        self._tracker = ResultTracker(self._keys)
        self._events = EventEmitter()
        self._cancelled = threading.Event()

        self._prepared = False
        self._started = False
        self._summary: Optional[CompressionSummary] = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        # Nothing to report when compress() never got past setup
        if self._started:
            self.shutdown()

    @property
    def tracker(self) -> ResultTracker:
        return self._tracker

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    @property
    def summary(self) -> Optional[CompressionSummary]:
        return self._summary

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def on(self, event_name: str, callback: Callable) -> None:
        self._events.on(event_name, callback)

    def cancel(self) -> None:
        """Stop workers from taking new files; in-flight calls complete."""
        if not self._cancelled.is_set():
            logger.info("Cancellation requested, workers stop after their current file")
        self._cancelled.set()

    def result_path_for(self, descriptor: FileDescriptor) -> Path:
        """Mirror the file's location under the source root onto the result root."""
        relative = descriptor.path.relative_to(self._discovery.source_root)
        return self._result_root / relative

    def prepare(self) -> None:
        """Create the mirrored result tree. Runs once, before any worker."""
        if self._prepared:
            return
        for directory in self._discovery.directories:
            target = self._result_root / Path(directory).relative_to(self._discovery.source_root)
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ResultTreeError(f"Failed creating result directory {target}: {exc}") from exc
        self._prepared = True
        logger.debug(f"Result tree ready under {self._result_root}")

    def compress(self) -> None:
        """Run one worker per key and block until all of them finish."""
        if self._started:
            raise RuntimeError("compress() can only run once per coordinator")
        self.prepare()
        self._started = True

        threads = max(1, min(self._config.threads, len(self._keys) or 1))
        logger.info(
            f"COMPRESSION START. Files: {len(self._queue)}, keys: {len(self._keys)}, threads: {threads}"
        )

        with ThreadPoolExecutor(max_workers=threads, thread_name_prefix="tinypool") as pool:
            futures = {pool.submit(self._run_worker, key): key for key in self._keys}
            try:
                wait(futures)
            except KeyboardInterrupt:
                self.cancel()
                raise

        for future, key in futures.items():
            exc = future.exception()
            if exc is not None:
                logger.error(f"Worker for key {mask_key(key)} crashed: {exc}", exc_info=exc)

        if self._queue.is_empty():
            logger.info("SOURCE FILES ARE OVER.")
        else:
            logger.warning(f"{len(self._queue)} file(s) left uncompressed")

    def shutdown(self) -> CompressionSummary:
        """Write the final reports. Safe to call more than once."""
        if self._summary is not None:
            return self._summary

        summary = self._tracker.snapshot(remaining=len(self._queue))
        self._write_reports(summary)
        self._summary = summary

        if summary.dropped:
            logger.warning(
                f"{summary.dropped} file(s) dropped after transient service errors "
                "(not listed in any report)"
            )
        logger.info(f"COMPRESSION IS FINISHED. Compressed {summary.compressed} files")
        return summary

    def _write_reports(self, summary: CompressionSummary) -> None:
        config = self._config
        self._report_writer.write(str(summary.compressed), config.count_compressed_report)

        if summary.failed_files:
            content = "\n".join(str(descriptor.path) for descriptor in summary.failed_files)
            self._report_writer.write(content, config.failed_files_report)

        if summary.failed_keys:
            self._report_writer.write("\n".join(summary.failed_keys), config.failed_keys_report)

        content = "\n".join(f"{key} - {count}" for key, count in summary.files_by_key.items())
        self._report_writer.write(content, config.files_by_key_report)

    def _validate(self, key: str) -> bool:
        try:
            valid = self._client.validate(key)
        except CompressionError as exc:
            logger.error(f"Validation failed, key = {mask_key(key)}, message = {exc}")
            valid = False
        else:
            if not valid:
                logger.error(f"Key rejected by service, key = {mask_key(key)}")

        if not valid:
            self._tracker.record_key_failure(key)
            self._events.emit("key_exhausted", key, "validation failed")
        return valid

    def _run_worker(self, key: str) -> None:
        if self._cancelled.is_set() or not self._validate(key):
            return

        while not self._cancelled.is_set():
            descriptor = self._queue.poll()
            if descriptor is None:
                break
            if not self._process(key, descriptor):
                break
        logger.debug(f"Worker for key {mask_key(key)} finished")

    def _process(self, key: str, descriptor: FileDescriptor) -> bool:
        """Compress one file. Returns False once the key is exhausted."""
        try:
            target = self.result_path_for(descriptor)
            image = self._client.compress(key, descriptor.path)
            target.write_bytes(image.data)
            descriptor.path.unlink()
        except AccountError as exc:
            # The file was never compressed, it goes back for the remaining keys.
            self._queue.push_back(descriptor)
            self._tracker.record_key_failure(key)
            logger.error(f"AccountError, message = {exc}, key = {mask_key(key)}, file = {descriptor} (requeued)")
            self._events.emit("key_exhausted", key, str(exc))
            return False
        except (ClientError, OSError, ValueError) as exc:
            self._tracker.record_file_failure(descriptor)
            logger.error(
                f"{type(exc).__name__}, message = {exc}, key = {mask_key(key)}, file = {descriptor}"
            )
            self._events.emit("file_failed", descriptor, key, str(exc))
            return True
        except CompressionError as exc:
            # Server and connection errors: the file is neither retried nor reported.
            self._tracker.record_drop(descriptor)
            logger.error(
                f"{type(exc).__name__}, message = {exc}, key = {mask_key(key)}, file = {descriptor} (dropped)"
            )
            self._events.emit("file_dropped", descriptor, key, str(exc))
            return True
        except Exception as exc:
            # Unclassified failure: retire the key visibly, the file stays available.
            self._queue.push_back(descriptor)
            self._tracker.record_key_failure(key)
            logger.exception(
                f"Unexpected {type(exc).__name__}, key = {mask_key(key)}, file = {descriptor} (requeued)"
            )
            self._events.emit("key_exhausted", key, f"{type(exc).__name__}: {exc}")
            return False

        self._tracker.record_success(key)
        logger.info(f"Compressed file = {descriptor}, key = {mask_key(key)}")
        self._events.emit("file_compressed", descriptor, key, image)
        return True
