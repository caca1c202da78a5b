"""The logger: normalizes, buffers and ships structured events."""

from __future__ import annotations

import logging
import os
import sys
import threading
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .bridge import GlobalEventBridge, SourceOption
from .config import LoggyConfig
from .levels import Level, is_fatal
from .normalizer import Event, fields_layer, normalize
from .scheduler import DelayScheduler, FlushScheduler, ThreadingScheduler
from .sender import HttpSender
from .sinks import ConsoleSink, EventSink
from .timers import DEFAULT_LABEL, TimerRegistry


logger = logging.getLogger(__name__)

# Fields with a dedicated derivation method, e.g. ``log.user("alice")``
DERIVATION_FIELDS = ("module", "user")


class Loggy:
    """
    Client-side structured event logger.

    Usage:
        log = Loggy("my-app")
        log.info("Started", {"port": 8080})
        log.log("Cache size", 42)
        log.error(exc)

        db_log = log.module("db")
        db_log.time("query")
        ...
        db_log.time_end("query")

    Every instance owns its own buffer, flush timer and timers; derived
    instances share the sender and console sink of their parent.
    """

    def __init__(
        self,
        app: str,
        remote: str | None = None,
        defaults: Mapping[str, Any] | None = None,
        *,
        config: LoggyConfig | None = None,
        sender: Callable[[Any], None] | None = None,
        sink: EventSink | None = None,
        scheduler: DelayScheduler | None = None,
    ):
        config = config or LoggyConfig()
        self.app = app
        self.remote = remote if remote is not None else config.remote
        self.defaults: Mapping[str, Any] = MappingProxyType({**config.defaults, **(defaults or {})})

        self.exit_on_fatal = config.exit_on_fatal
        self.print_to_console = config.print_to_console
        self.exit_func: Callable[[int], Any] = self.terminate
        self.exit_code: int | None = None

        self.sender = sender or HttpSender(self.remote, app, timeout=config.timeout)
        self.sink = sink or ConsoleSink(format=config.console_format)
        self.timers = TimerRegistry()

        self._scheduler = FlushScheduler(
            send=self.sender,
            interval_ms=config.throttle_interval,
            limit=config.throttle_limit,
            scheduler=scheduler or ThreadingScheduler(),
        )
        self._bridge: GlobalEventBridge | None = None

    @classmethod
    def from_config(cls, app: str, config: LoggyConfig) -> Loggy:
        return cls(app, config=config.validate())

    @property
    def throttle_interval(self) -> float:
        """Batch window in milliseconds; <= 0 disables buffering."""
        return self._scheduler.interval_ms

    @throttle_interval.setter
    def throttle_interval(self, value: float) -> None:
        self._scheduler.interval_ms = value

    @property
    def throttle_limit(self) -> int:
        """Buffered events that force an immediate flush."""
        return self._scheduler.limit

    @throttle_limit.setter
    def throttle_limit(self, value: int) -> None:
        self._scheduler.limit = value

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def log(self, message: Any, fields: Any = None, immediate: bool | None = None) -> None:
        """
        Log one event (or one per element when ``message`` is a list).

        Args:
            message: text, a mapping of fields, an exception, or a list of those
            fields: mapping of extra fields, a number (stored as ``value``),
                or the immediate flag when ``immediate`` is omitted
            immediate: flush the buffer right away
        """
        for event, flush_now in normalize(self.defaults, message, fields, immediate):
            self._dispatch(event, flush_now)

    def _dispatch(self, event: Event, immediate: bool) -> None:
        will_exit = self.exit_on_fatal and is_fatal(event.get("level"))

        self._scheduler.enqueue(event, force_immediate=immediate, will_exit=will_exit)

        if self.print_to_console:
            self.sink.write(event)

        if will_exit:
            logger.info(f"Fatal event logged for {self.app}, exiting with status 1")
            self.exit_code = 1
            self.exit_func(1)

    def terminate(self, code: int) -> None:
        """
        End the process with status ``code``.

        On the main thread this raises SystemExit. Elsewhere SystemExit would
        only end the calling thread, so pending posts are drained and the
        process exits immediately.
        """
        if threading.current_thread() is threading.main_thread():
            sys.exit(code)

        self.close()
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(code)

    def flush(self) -> None:
        """Send buffered events now."""
        self._scheduler.flush()

    def close(self) -> None:
        """Flush, then wait for in-flight sends."""
        self.flush()
        close = getattr(self.sender, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> Loggy:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Timers

    def time(self, label: str = DEFAULT_LABEL, fields: Mapping[str, Any] | None = None) -> None:
        """Start (or restart) the timer ``label``."""
        self.timers.start(label, dict(fields or {}))

    def time_log(self, label: str = DEFAULT_LABEL, fields: Mapping[str, Any] | None = None) -> None:
        """Log the seconds elapsed on timer ``label`` as a ``timing`` event."""
        timer = self.timers.get(label)
        if timer is None:
            self.warn(f"Timer '{label}' does not exist")
            return

        self.log(label, {
            "level": Level.TIMING.value,
            "value": timer.elapsed,
            **timer.fields,
            **(fields or {}),
        })

    def time_end(self, label: str = DEFAULT_LABEL, fields: Mapping[str, Any] | None = None) -> None:
        """Log the timer like ``time_log`` and forget it."""
        self.time_log(label, fields)
        self.timers.remove(label)

    # Derivation

    def with_field(self, name: str, value: Any) -> Loggy:
        """A new logger whose events carry ``name: value``; this logger is unchanged."""
        child = Loggy(
            self.app,
            self.remote,
            {**self.defaults, name: value},
            sender=self.sender,
            sink=self.sink,
            scheduler=self._scheduler.scheduler,
        )
        child.exit_on_fatal = self.exit_on_fatal
        child.print_to_console = self.print_to_console
        child.throttle_interval = self.throttle_interval
        child.throttle_limit = self.throttle_limit
        child.exit_func = self.exit_func
        return child

    # Global events

    def handle_global_events(
        self,
        exceptions: SourceOption = True,
        rejections: SourceOption = True,
        warnings: SourceOption = True,
        exits: SourceOption = True,
        loop=None,
    ) -> GlobalEventBridge:
        """
        Log process-level events through this logger.

        Each source is False (off), True (on) or a mapping of extra fields:
            exceptions: uncaught exceptions, logged as ``fatal`` and flushed
            rejections: unhandled asyncio task errors, logged as ``error`` and flushed
            warnings: ``warnings.warn`` output, logged as ``warn``
            exits: interpreter exit, logged as ``info`` with the exit ``code``
        """
        if self._bridge is None:
            self._bridge = GlobalEventBridge(self)
        self._bridge.install(
            exceptions=exceptions,
            rejections=rejections,
            warnings=warnings,
            exits=exits,
            loop=loop,
        )
        return self._bridge

    def __repr__(self) -> str:
        return f"Loggy(app={self.app!r}, remote={self.remote!r}, defaults={dict(self.defaults)!r})"


def _level_method(level: str):
    def method(self: Loggy, message: Any, fields: Any = None, immediate: bool | None = None) -> None:
        if isinstance(fields, bool) and immediate is None:
            fields, immediate = None, fields
        self.log(message, {"level": level, **fields_layer(fields)}, immediate)

    method.__name__ = level
    method.__qualname__ = f"Loggy.{level}"
    method.__doc__ = f"Log at ``{level}`` level."
    return method


def _derive_method(name: str):
    def method(self: Loggy, value: Any) -> Loggy:
        return self.with_field(name, value)

    method.__name__ = name
    method.__qualname__ = f"Loggy.{name}"
    method.__doc__ = f"A new logger tagging every event with ``{name}``."
    return method


for _level in Level:
    setattr(Loggy, _level.value, _level_method(_level.value))

for _field in DERIVATION_FIELDS:
    setattr(Loggy, _field, _derive_method(_field))
