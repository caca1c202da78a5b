"""Base sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..normalizer import Event


class EventSink(ABC):
    """
    Abstract base class for local event output.

    Sinks see every normalized event as it is logged, independent of
    buffering and delivery to the collector.
    """

    @abstractmethod
    def write(self, event: Event) -> None:
        """Render a single event."""
        ...

    def close(self) -> None:
        """Release any resources held by the sink."""
        pass
