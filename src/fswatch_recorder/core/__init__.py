"""Core contracts between the pipeline and its collaborators."""

from fswatch_recorder.core.interfaces import IEventWriter, IWatchSource

__all__ = [
    "IEventWriter",
    "IWatchSource",
]
