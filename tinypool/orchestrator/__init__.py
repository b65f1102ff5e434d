"""Orchestrator package - coordinates compression workers."""
from .core import CompressionCoordinator
from .file_collector import FileCollector
from .tracker import ResultTracker
from .work_queue import WorkQueue

__all__ = ["CompressionCoordinator", "FileCollector", "ResultTracker", "WorkQueue"]
