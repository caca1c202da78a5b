"""Named timers backing ``time`` / ``time_log`` / ``time_end``."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


DEFAULT_LABEL = "default"


@dataclass(frozen=True, slots=True)
class Timer:
    """A running timer: when it started and the fields to attach to its events."""
    started: float
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed(self) -> float:
        """Seconds since the timer started."""
        return time.monotonic() - self.started


@dataclass
class TimerRegistry:
    """
    Label-keyed timers for one logger instance.

    Missing labels are never an error here; callers decide how to report them.
    """
    _timers: dict[str, Timer] = field(default_factory=dict, init=False)

    def start(self, label: str = DEFAULT_LABEL, fields: dict[str, Any] | None = None) -> Timer:
        """Create or overwrite the timer for ``label``."""
        timer = Timer(started=time.monotonic(), fields=dict(fields or {}))
        self._timers[label] = timer
        return timer

    def get(self, label: str = DEFAULT_LABEL) -> Timer | None:
        return self._timers.get(label)

    def remove(self, label: str = DEFAULT_LABEL) -> Timer | None:
        return self._timers.pop(label, None)

    def __contains__(self, label: str) -> bool:
        return label in self._timers

    def __len__(self) -> int:
        return len(self._timers)
