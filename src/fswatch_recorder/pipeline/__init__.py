"""
Event pipeline package.

Provides the bounded relay channel and the batch accumulator that flushes
records from it to the event store.
"""

from .accumulator import BatchAccumulator
from .channel import RelayChannel

__all__ = [
    "BatchAccumulator",
    "RelayChannel",
]
