"""
Loggy - structured event logging with batched delivery to a remote collector.

Usage:
    from loggy import Loggy

    log = Loggy("billing", "http://collector:1065/")
    log.info("Invoice created", {"invoice": 42})
    log.log("Queue depth", 17)              # value shorthand
    log.error(exc)                          # exceptions become error events

    log.time("export")
    ...
    log.time_end("export")                  # timing event in seconds

    log.user("alice").notice("Signed in")   # derived logger with user field
    log.handle_global_events()              # uncaught exceptions, warnings, exit
"""

from .config import ConfigError, LoggyConfig, LoggyError
from .levels import FATAL_LEVELS, Level, is_fatal
from .logger import Loggy
from .normalizer import CallShape, Event, classify, normalize
from .scheduler import AsyncioScheduler, FlushScheduler, ThreadingScheduler
from .sender import HttpSender, log_url
from .sinks import ConsoleSink, EventSink
from .timers import Timer, TimerRegistry

__version__ = "0.1.0"

__all__ = [
    # Core
    "Loggy",
    "LoggyConfig",
    # Events
    "Event",
    "Level",
    "FATAL_LEVELS",
    "is_fatal",
    "CallShape",
    "classify",
    "normalize",
    # Delivery
    "FlushScheduler",
    "ThreadingScheduler",
    "AsyncioScheduler",
    "HttpSender",
    "log_url",
    # Output
    "EventSink",
    "ConsoleSink",
    # Timers
    "Timer",
    "TimerRegistry",
    # Exceptions
    "LoggyError",
    "ConfigError",
]
