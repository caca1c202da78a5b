"""Console sink for development/debugging."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from colorama import Fore, Style

from ..levels import FATAL_LEVELS
from ..normalizer import Event
from ..sender import dumps
from .base import EventSink


LEVEL_COLORS = {
    "trace": Style.DIM,
    "verbose": Style.DIM,
    "silly": Style.DIM,
    "debug": Fore.BLUE,
    "info": Fore.GREEN,
    "notice": Fore.CYAN,
    "success": Fore.GREEN,
    "http": Fore.MAGENTA,
    "timing": Fore.MAGENTA,
    "redirect": Fore.CYAN,
    "warn": Fore.YELLOW,
    "warning": Fore.YELLOW,
    "error": Fore.RED,
    "crit": Fore.RED,
    "critical": Fore.RED,
    "alert": Fore.RED,
}


@dataclass
class ConsoleSink(EventSink):
    """
    Sink that writes events to console (stdout/stderr).

    Formats:
        json: one JSON object per line
        compact: ``ts LEVEL message key=value ...``
        pretty: indented JSON
    """
    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "compact"  # json | compact | pretty

    # Prefix for each line
    prefix: str = ""

    # Colour the level in compact format (None = only when writing to a tty)
    color: bool | None = None

    def write(self, event: Event) -> None:
        out = self._out()
        try:
            line = self.format_event(event)
        except ValueError:
            # Circular references cannot be encoded
            line = repr(event)
        print(f"{self.prefix}{line}", file=out)

    def _out(self) -> TextIO:
        return sys.stdout if self.stream == "stdout" else sys.stderr

    def format_event(self, event: Event) -> str:
        if self.format == "json":
            return dumps(event)
        elif self.format == "compact":
            return self._format_compact(event)
        else:  # pretty
            return dumps(event, indent=2)

    def _format_compact(self, event: Event) -> str:
        level = event.get("level", "log")
        level = str(level.value if isinstance(level, Enum) else level)
        parts = [
            str(event.get("ts", "")),
            self._colorize_level(level),
            str(event.get("message", "")),
        ]
        for key, value in event.items():
            if key in ("ts", "level", "message"):
                continue
            rendered = value if isinstance(value, str) else dumps(value)
            parts.append(f"{key}={rendered}")
        return " ".join(parts)

    def _colorize_level(self, level: str) -> str:
        label = level.upper()
        use_color = self.color if self.color is not None else self._out().isatty()
        if not use_color:
            return label
        if level in FATAL_LEVELS:
            return f"{Style.BRIGHT}{Fore.RED}{label}{Style.RESET_ALL}"
        color = LEVEL_COLORS.get(level)
        return f"{color}{label}{Style.RESET_ALL}" if color else label
