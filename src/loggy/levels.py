"""Severity labels recognized by the logger."""

from __future__ import annotations

from enum import Enum
from typing import Any


class Level(str, Enum):
    """Severity table, ordered from least to most severe."""
    TRACE = "trace"
    VERBOSE = "verbose"
    SILLY = "silly"
    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    SUCCESS = "success"
    HTTP = "http"
    TIMING = "timing"
    REDIRECT = "redirect"
    WARN = "warn"
    WARNING = "warning"
    ERROR = "error"
    CRIT = "crit"
    CRITICAL = "critical"
    FATAL = "fatal"
    ALERT = "alert"
    EMERG = "emerg"
    EMERGENCY = "emergency"


# Levels that terminate the process when exit_on_fatal is enabled
FATAL_LEVELS = frozenset({Level.FATAL.value, Level.EMERG.value, Level.EMERGENCY.value})


def is_fatal(level: Any) -> bool:
    """Case-sensitive membership test against the fatal-class severities."""
    if isinstance(level, Level):
        level = level.value
    return isinstance(level, str) and level in FATAL_LEVELS
