"""Console sinks - local rendering of events as they are logged."""

from .base import EventSink
from .console import ConsoleSink

__all__ = [
    "EventSink",
    "ConsoleSink",
]
