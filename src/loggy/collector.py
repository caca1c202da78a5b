"""
Development collector.

A minimal FastAPI app that accepts what the sender posts, for local runs
and end-to-end checks. It keeps the most recent events per app in memory.

Run with:
    loggy serve --port 1065
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Union

from fastapi import Body, FastAPI, Query
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

DEFAULT_PORT = 1065


class IngestResponse(BaseModel):
    """Result of accepting one post."""
    app: str = Field(..., description="Application the events were logged for")
    accepted: int = Field(..., description="Number of events stored")


class EventListResponse(BaseModel):
    """Recent events for one application, oldest first."""
    app: str
    events: list[dict[str, Any]] = Field(default_factory=list)


class EventStore:
    """Bounded per-app event history."""

    def __init__(self, max_events: int = 10000):
        self.max_events = max_events
        self._events: dict[str, deque[dict[str, Any]]] = {}

    def add(self, app: str, events: list[dict[str, Any]]) -> None:
        history = self._events.setdefault(app, deque(maxlen=self.max_events))
        history.extend(events)

    def recent(self, app: str, limit: int | None = None) -> list[dict[str, Any]]:
        history = list(self._events.get(app, ()))
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    def apps(self) -> list[str]:
        return sorted(self._events)


def create_app(store: EventStore | None = None) -> FastAPI:
    """Build the collector application."""
    store = store or EventStore()
    app = FastAPI(title="Loggy Collector", description="Development sink for loggy events")
    app.state.store = store

    @app.post("/log/{app_name}", response_model=IngestResponse)
    async def ingest(
        app_name: str,
        payload: Union[dict[str, Any], list[dict[str, Any]]] = Body(...),
    ) -> IngestResponse:
        events = payload if isinstance(payload, list) else [payload]
        store.add(app_name, events)
        logger.info(f"Received {len(events)} events for {app_name}")
        return IngestResponse(app=app_name, accepted=len(events))

    @app.get("/log/{app_name}", response_model=EventListResponse)
    async def recent(app_name: str, limit: int | None = Query(None, ge=0)) -> EventListResponse:
        return EventListResponse(app=app_name, events=store.recent(app_name, limit))

    @app.get("/apps")
    async def apps() -> dict[str, list[str]]:
        return {"apps": store.apps()}

    return app
