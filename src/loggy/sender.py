"""Fire-and-forget delivery of events to the remote collector."""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx


logger = logging.getLogger(__name__)

JSON_KEY_TYPES = (str, int, float, bool, type(None))


def log_url(remote: str, app: str) -> str:
    """Collector endpoint for ``app``: ``<remote>/log/<app>``."""
    separator = "" if remote.endswith("/") else "/"
    return f"{remote}{separator}log/{app}"


def jsonable(value: Any, _parents: frozenset = frozenset()) -> Any:
    """
    Copy of ``value`` whose mapping keys JSON can encode; other keys are stringified.

    Raises ValueError on circular references, as ``json.dumps`` does.
    """
    if not isinstance(value, (dict, list, tuple)):
        return value
    if id(value) in _parents:
        raise ValueError("Circular reference detected")
    parents = _parents | {id(value)}
    if isinstance(value, dict):
        return {
            (key if isinstance(key, JSON_KEY_TYPES) else str(key)): jsonable(item, parents)
            for key, item in value.items()
        }
    return [jsonable(item, parents) for item in value]


def dumps(payload: Any, **kwargs) -> str:
    """``json.dumps`` for events: unknown keys and values are stringified."""
    return json.dumps(jsonable(payload), default=str, **kwargs)


def encode(payload: Any) -> bytes:
    """JSON-encode one event or a list of events."""
    return dumps(payload).encode("utf-8")


@dataclass
class HttpSender:
    """
    POSTs events to the collector without blocking the caller.

    Posts run on a single background worker so batches leave in the order
    they were handed over. Outcomes are not reported back: payloads that
    cannot be encoded and failed posts are counted as dropped and
    otherwise ignored. ``on_error`` is called with the exception when set.
    """
    remote: str
    app: str
    timeout: float = 5.0

    # Optional custom transport (tests use httpx.MockTransport)
    transport: httpx.BaseTransport | None = None
    on_error: Callable[[Exception], None] | None = None

    # Internal state
    _client: httpx.Client | None = field(default=None, init=False)
    _executor: ThreadPoolExecutor | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "sent": 0,
            "dropped": 0,
        }

    @property
    def url(self) -> str:
        return log_url(self.remote, self.app)

    def __call__(self, payload: Any) -> None:
        self.send(payload)

    def send(self, payload: Any) -> None:
        """Submit one event or a batch; returns immediately and never raises."""
        try:
            body = encode(payload)
        except (TypeError, ValueError) as e:
            # e.g. circular references
            self._drop(e)
            return

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="loggy-sender")
            executor = self._executor
        try:
            executor.submit(self._post, body)
        except RuntimeError:
            # Pool refuses work during interpreter shutdown; exit-time events go out inline
            self._post(body)

    def _post(self, body: bytes) -> None:
        try:
            response = self._get_client().post(
                self.url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except Exception as e:
            # Delivery failures never reach the logging caller
            self._drop(e)
            return
        with self._lock:
            self._stats["sent"] += 1

    def _drop(self, error: Exception) -> None:
        with self._lock:
            self._stats["dropped"] += 1
        if self.on_error is not None:
            self.on_error(error)

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self.timeout, transport=self.transport)
            return self._client

    def close(self) -> None:
        """Wait for in-flight posts and release the connection pool."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()
        logger.debug(f"Sender for {self.url} closed. Stats: {self._stats}")

    @property
    def stats(self) -> dict:
        """Get sender statistics."""
        return dict(self._stats)
