"""Buffering and throttled flush scheduling."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from .normalizer import Event


logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


class DelayScheduler(Protocol):
    """Runs a callback once after a delay. ``threading.Timer`` and ``asyncio.TimerHandle`` both fit."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


@dataclass
class ThreadingScheduler:
    """Delayed callbacks on ``threading.Timer`` threads."""
    # Non-daemon timers keep the interpreter alive until the pending flush runs
    daemon: bool = False

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = self.daemon
        timer.start()
        return timer


@dataclass
class AsyncioScheduler:
    """Delayed callbacks on an asyncio event loop (the running loop if none is given)."""
    loop: asyncio.AbstractEventLoop | None = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass
class FlushScheduler:
    """
    Holds pending events and decides when they go to the sender.

    - interval <= 0: every event is sent on its own, unbuffered
    - immediate, exiting, or buffer reaching ``limit``: the whole buffer is sent now
    - otherwise a single flush timer is armed for ``interval_ms``

    At most one flush timer is armed at a time. Taking the buffer, cancelling
    the timer and handing the batch to the sender happen under one lock, so
    every event lands in exactly one batch.
    """
    # Sender: receives a single event or a list of events
    send: Callable[[Any], None]

    interval_ms: float = 100
    limit: int = 1000

    scheduler: DelayScheduler = field(default_factory=ThreadingScheduler)

    # Internal state
    _buffer: list[Event] = field(default_factory=list, init=False)
    _timer: Cancellable | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
        }

    def enqueue(self, event: Event, force_immediate: bool = False, will_exit: bool = False) -> None:
        """Buffer an event and flush or arm the timer as the policy requires."""
        with self._lock:
            if self.interval_ms <= 0:
                self.send(event)
                self._stats["events_sent"] += 1
                return

            self._buffer.append(event)

            if will_exit or force_immediate or len(self._buffer) >= self.limit:
                self._flush_unsafe()
            elif self._timer is None:
                self._arm_unsafe()

    def flush(self) -> None:
        """Send whatever is buffered now."""
        with self._lock:
            self._flush_unsafe()

    def _arm_unsafe(self) -> None:
        """Arm the flush timer (caller must hold lock)."""
        self._generation += 1
        generation = self._generation
        self._timer = self.scheduler.call_later(
            self.interval_ms / 1000.0,
            lambda: self._on_timer(generation),
        )

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # Cancelled after it started firing
            if generation != self._generation or self._timer is None:
                return
            self._flush_unsafe()

    def _flush_unsafe(self) -> None:
        """Cancel the timer and send the whole buffer (caller must hold lock)."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._generation += 1

        if not self._buffer:
            return

        batch, self._buffer = self._buffer, []
        logger.debug(f"Flushing {len(batch)} buffered events")

        self.send(batch)
        self._stats["batches_sent"] += 1
        self._stats["events_sent"] += len(batch)

    @property
    def buffer_size(self) -> int:
        """Current buffer size."""
        return len(self._buffer)

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    @property
    def stats(self) -> dict:
        """Get scheduler statistics."""
        return {
            **self._stats,
            "buffer_size": self.buffer_size,
            "timer_armed": self.timer_armed,
        }
