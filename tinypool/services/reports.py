"""
Report Service - writes run reports as plain text files.

Each report lands in the report directory as ``<timestamp>-<name>``.
Failures are logged and never raised.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


class FileReportWriter:
    """
    Report sink backed by the filesystem.

    Implements IReportWriter. The directory is created on first write so a
    run that aborts early leaves nothing behind.
    """

    def __init__(
        self,
        report_dir: Path,
        base_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._base_dir = Path(base_dir) if base_dir else Path.cwd()
        report_dir = Path(report_dir)
        self._requested = report_dir if report_dir.is_absolute() else self._base_dir / report_dir
        self._report_path: Optional[Path] = None
        self._clock = clock

    @property
    def report_path(self) -> Path:
        """Directory reports are written to, created on first access."""
        if self._report_path is None:
            try:
                self._requested.mkdir(parents=True, exist_ok=True)
                self._report_path = self._requested
            except OSError as exc:
                logger.error(f"Error creating report dir {self._requested}: {exc}")
                self._report_path = self._base_dir
            logger.info(f"Report dir = {self._report_path}")
        return self._report_path

    def path_for(self, name: str) -> Path:
        stamp = self._clock().strftime(TIMESTAMP_FORMAT)
        return self.report_path / f"{stamp}-{name}"

    def write(self, content: str, name: str) -> None:
        path = self.path_for(name)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            logger.error(f"Failed writing report {name}: {exc}")
            logger.info(f"Report {name} content:\n{content}")
            return
        logger.debug(f"Report written: {path}")
