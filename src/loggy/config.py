"""Logger configuration."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Any


DEFAULT_REMOTE = "http://127.0.0.1:1065/"

CONSOLE_FORMATS = ("json", "compact", "pretty")


class LoggyError(Exception):
    """Base exception for loggy errors."""
    pass


class ConfigError(LoggyError):
    """Invalid logger configuration."""
    pass


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


@dataclass
class LoggyConfig:
    """
    Configuration for a logger instance.

    Can be set via:
    - Constructor arguments
    - Environment variables (LOGGY_*)
    - Config file (YAML or JSON)
    """
    # Collector base URL; events go to <remote>/log/<app>
    remote: str = field(
        default_factory=lambda: os.environ.get("LOGGY_REMOTE", DEFAULT_REMOTE)
    )

    # Terminate the process (status 1) after logging a fatal-class event
    exit_on_fatal: bool = field(
        default_factory=lambda: _env_bool("LOGGY_EXIT_ON_FATAL", "true")
    )

    # Echo every event to the console sink
    print_to_console: bool = field(
        default_factory=lambda: _env_bool("LOGGY_PRINT_TO_CONSOLE", "true")
    )

    # Batch window in milliseconds (<= 0 sends every event on its own)
    throttle_interval: float = field(
        default_factory=lambda: float(os.environ.get("LOGGY_THROTTLE_INTERVAL", "100"))
    )

    # Max number of buffered events before a forced flush
    throttle_limit: int = field(
        default_factory=lambda: int(os.environ.get("LOGGY_THROTTLE_LIMIT", "1000"))
    )

    # HTTP timeout for a single post (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("LOGGY_TIMEOUT", "5"))
    )

    console_format: str = "compact"  # json | compact | pretty

    # Fields merged into every event
    defaults: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> LoggyConfig:
        """Raise ConfigError for values the logger cannot work with."""
        if self.throttle_limit < 1:
            raise ConfigError(f"throttle_limit must be at least 1, got {self.throttle_limit}")
        if self.console_format not in CONSOLE_FORMATS:
            raise ConfigError(
                f"console_format must be one of {', '.join(CONSOLE_FORMATS)}, got {self.console_format!r}"
            )
        if not isinstance(self.defaults, dict):
            raise ConfigError("defaults must be a mapping")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> LoggyConfig:
        """Create config from dictionary."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data).validate()

    @classmethod
    def from_yaml(cls, path: str) -> LoggyConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> LoggyConfig:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
