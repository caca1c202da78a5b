"""Tests for the development collector."""

import httpx
import pytest
from fastapi.testclient import TestClient

from loggy import Loggy, LoggyConfig
from loggy.collector import EventStore, create_app
from loggy.sender import HttpSender


@pytest.fixture
def store():
    return EventStore(max_events=5)


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


class TestCollector:
    def test_single_event(self, client, store):
        response = client.post("/log/billing", json={"message": "hi", "level": "info"})

        assert response.status_code == 200
        assert response.json() == {"app": "billing", "accepted": 1}
        assert store.recent("billing") == [{"message": "hi", "level": "info"}]

    def test_batch(self, client):
        response = client.post("/log/billing", json=[{"message": "a"}, {"message": "b"}])

        assert response.json()["accepted"] == 2
        events = client.get("/log/billing").json()["events"]
        assert [e["message"] for e in events] == ["a", "b"]

    def test_bounded_history(self, client):
        client.post("/log/app", json=[{"n": n} for n in range(8)])

        events = client.get("/log/app").json()["events"]
        assert [e["n"] for e in events] == [3, 4, 5, 6, 7]

    def test_limit(self, client):
        client.post("/log/app", json=[{"n": n} for n in range(3)])

        assert client.get("/log/app", params={"limit": 1}).json()["events"] == [{"n": 2}]
        assert client.get("/log/app", params={"limit": 0}).json()["events"] == []

    def test_rejects_non_json_object(self, client):
        response = client.post("/log/app", json="just a string")

        assert response.status_code == 422

    def test_apps(self, client):
        client.post("/log/b", json={})
        client.post("/log/a", json={})

        assert client.get("/apps").json() == {"apps": ["a", "b"]}


class TestEndToEnd:
    def test_logger_to_collector(self, store, sink):
        client = TestClient(create_app(store))

        def forward(request):
            response = client.post(
                request.url.path,
                content=request.content,
                headers={"Content-Type": request.headers["content-type"]},
            )
            return httpx.Response(response.status_code, content=response.content)

        sender = HttpSender("http://testserver/", "shop", transport=httpx.MockTransport(forward))
        config = LoggyConfig(throttle_interval=0)
        with Loggy("shop", config=config, sender=sender, sink=sink) as log:
            log.user("alice").info("Checkout", {"cart": 3})
            log.log("Done", {}, True)

        events = store.recent("shop")
        assert [e["message"] for e in events] == ["Checkout", "Done"]
        assert events[0]["user"] == "alice"
        assert events[0]["cart"] == 3
        assert "user" not in events[1]
        assert sender.stats == {"sent": 2, "dropped": 0}
