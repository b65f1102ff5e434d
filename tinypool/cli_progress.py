"""Console rendering and progress helpers for tinypool CLI."""
from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .models import CompressedImage, CompressionSummary, FileDescriptor
from .services.keys import mask_key

console = Console()


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]tinypool[/bold green]",
        subtitle="[dim]Tinify batch compressor[/dim]",
        border_style="blue",
    )
    console.print(panel)


class CompressionProgressDisplay:
    """Event-based console display for a compression run."""

    def __init__(self, total_files: int, quiet: bool = False):
        self._total = total_files
        self._quiet = quiet
        self._stats: Dict[str, int] = {
            "compressed": 0,
            "failed": 0,
            "dropped": 0,
            "keys_exhausted": 0,
        }
        self._output_bytes = 0
        self._lock = threading.Lock()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]Compressing", justify="left"),
            BarColumn(bar_width=42),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TextColumn("[dim]{task.fields[detail]}", justify="left"),
            expand=False,
            console=console,
            disable=quiet,
        )
        self._task_id: Optional[TaskID] = None

    def attach(self, coordinator) -> None:
        """Subscribe to coordinator events."""
        coordinator.on("file_compressed", self.on_file_compressed)
        coordinator.on("file_failed", self.on_file_failed)
        coordinator.on("file_dropped", self.on_file_dropped)
        coordinator.on("key_exhausted", self.on_key_exhausted)

    def start(self) -> None:
        if self._task_id is not None:
            return
        self._progress.start()
        self._task_id = self._progress.add_task(
            "compress",
            total=max(self._total, 1),
            detail=self._detail(),
        )

    def stop(self) -> None:
        if self._task_id is None:
            return
        self._progress.stop()
        self._task_id = None

    def _detail(self) -> str:
        stats = self._stats
        return (
            f"ok={stats['compressed']} failed={stats['failed']} "
            f"dropped={stats['dropped']} dead keys={stats['keys_exhausted']}"
        )

    def _advance(self) -> None:
        if self._task_id is None:
            return
        self._progress.update(self._task_id, advance=1, detail=self._detail())

    def _emit_timeline(self, status: str, kind: str, name: str, error: Optional[str] = None) -> None:
        if self._quiet:
            return
        stamp = time.strftime("%H:%M:%S")
        error_label = f" cause={error}" if error else ""
        palette = {
            "DONE": "green",
            "FAIL": "red",
            "DROP": "yellow",
            "KEY": "magenta",
        }
        color = palette.get(status, "white")
        self._progress.console.print(
            f"[dim]{stamp}[/dim] [{color}]{status:<4}[/{color}] {kind}: {name}{error_label}"
        )

    def on_file_compressed(self, descriptor: FileDescriptor, key: str, image: CompressedImage) -> None:
        with self._lock:
            self._stats["compressed"] += 1
            self._output_bytes += image.size
        self._emit_timeline("DONE", "file", f"{descriptor.name} {_human_size(image.size)}")
        self._advance()

    def on_file_failed(self, descriptor: FileDescriptor, key: str, error: str) -> None:
        with self._lock:
            self._stats["failed"] += 1
        self._emit_timeline("FAIL", "file", descriptor.name, error=error)
        self._advance()

    def on_file_dropped(self, descriptor: FileDescriptor, key: str, error: str) -> None:
        with self._lock:
            self._stats["dropped"] += 1
        self._emit_timeline("DROP", "file", descriptor.name, error=error)
        self._advance()

    def on_key_exhausted(self, key: str, reason: str) -> None:
        with self._lock:
            self._stats["keys_exhausted"] += 1
        self._emit_timeline("KEY", "key", mask_key(key), error=reason)
        if self._task_id is not None:
            self._progress.update(self._task_id, detail=self._detail())

    def on_finish(self, summary: CompressionSummary) -> None:
        self.stop()
        if self._quiet:
            return
        style = "bold green" if summary.success else "bold yellow"
        console.print(
            f"[{style}]Finished[/{style}] compressed={summary.compressed} total={self._total} "
            f"failed={len(summary.failed_files)} dropped={summary.dropped} "
            f"remaining={summary.remaining} dead keys={len(summary.failed_keys)}"
            f" output={_human_size(self._output_bytes)}"
        )
        if summary.files_by_key:
            table = Table(title="Files by key", show_header=True, header_style="bold cyan")
            table.add_column("Key")
            table.add_column("Files", justify="right")
            table.add_column("Status")
            active = set(summary.active_keys)
            for key, count in summary.files_by_key.items():
                status = "[green]ok[/green]" if key in active else "[red]exhausted[/red]"
                table.add_row(mask_key(key), str(count), status)
            console.print(table)
