"""Shared test fixtures for loggy tests."""

from __future__ import annotations

import pytest

from loggy import Loggy, LoggyConfig
from loggy.sinks import EventSink


class ManualScheduler:
    """Delay scheduler whose callbacks only run when the test fires them."""

    class Handle:
        def __init__(self, delay, callback):
            self.delay = delay
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback):
        handle = self.Handle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def fire(self):
        """Run every pending callback, as if their delays elapsed."""
        for handle in self.pending:
            handle.cancelled = True
            handle.callback()


class RecordingSender:
    """Sender that keeps every payload it is handed."""

    def __init__(self):
        self.payloads = []

    def __call__(self, payload):
        self.payloads.append(payload)

    @property
    def batches(self):
        return [p for p in self.payloads if isinstance(p, list)]

    @property
    def events(self):
        """Every event sent, flattened, in send order."""
        flat = []
        for payload in self.payloads:
            flat.extend(payload if isinstance(payload, list) else [payload])
        return flat


class RecordingSink(EventSink):
    def __init__(self):
        self.events = []

    def write(self, event):
        self.events.append(event)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def exits():
    """Exit codes requested by loggers built with make_logger."""
    return []


@pytest.fixture
def make_logger(scheduler, sender, sink, exits):
    """Build a logger wired to recording fakes; exit requests are recorded, not performed."""

    def factory(app="test-app", defaults=None, **overrides):
        config = LoggyConfig(
            remote="http://collector.test/",
            exit_on_fatal=True,
            print_to_console=True,
            throttle_interval=100,
            throttle_limit=1000,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        log = Loggy(app, defaults=defaults, config=config, sender=sender, sink=sink, scheduler=scheduler)
        log.exit_func = exits.append
        return log

    return factory


@pytest.fixture
def log(make_logger):
    return make_logger()
