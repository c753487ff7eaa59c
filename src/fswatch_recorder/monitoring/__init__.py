"""
Monitoring package for file system change detection.

This package provides the watchdog-backed watch source, the normalizer that
turns raw change notifications into event records, and the coordinator that
runs them with the rest of the event pipeline.
"""

from .file_watcher import FileSystemWatchSource
from .normalizer import classify, normalize
from .pipeline_coordinator import EventPipeline

__all__ = [
    "EventPipeline",
    "FileSystemWatchSource",
    "classify",
    "normalize",
]
