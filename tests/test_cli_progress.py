"""Tests for the rich progress display."""
from pathlib import Path

from rich.console import Console

import tinypool.cli_progress as cli_progress
from tinypool.cli_progress import CompressionProgressDisplay, render_configuration_summary
from tinypool.models import CompressedImage, CompressionSummary, FileDescriptor


def _recording_console(monkeypatch):
    console = Console(record=True, width=140, force_terminal=False)
    monkeypatch.setattr(cli_progress, "console", console)
    return console


def test_finish_table_marks_exhausted_keys(monkeypatch):
    console = _recording_console(monkeypatch)
    display = CompressionProgressDisplay(total_files=3)
    display.on_file_compressed(FileDescriptor(Path("/src/a.png")), "k1", CompressedImage(b"x" * 2048))

    display.on_finish(
        CompressionSummary(
            compressed=3,
            failed_files=(),
            failed_keys=("k2",),
            files_by_key={"k1": 3, "k2": 0},
        )
    )

    output = console.export_text()
    assert "Finished compressed=3 total=3" in output
    assert "output=2.00 KB" in output
    rows = [line for line in output.splitlines() if "k1" in line or "k2" in line]
    assert "ok" in rows[0] and "k1" in rows[0]
    assert "exhausted" in rows[1] and "k2" in rows[1]


def test_quiet_display_prints_nothing(monkeypatch):
    console = _recording_console(monkeypatch)
    display = CompressionProgressDisplay(total_files=1, quiet=True)

    display.on_finish(CompressionSummary(compressed=0, failed_files=(), failed_keys=(), dropped=1))

    assert console.export_text() == ""


def test_configuration_summary_renders_missing_values(monkeypatch):
    console = _recording_console(monkeypatch)

    render_configuration_summary({"Threads": 4, "Run Log": None})

    output = console.export_text()
    assert "Threads" in output and "4" in output
    assert "Run Log" in output and "-" in output
