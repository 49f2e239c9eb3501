from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from missioncontrol import main
from missioncontrol.api.websocket import ConnectionManager, router as websocket_router


@pytest.fixture
def live_app(monkeypatch, fake_store):
    monkeypatch.setattr(main.aggregator, "_store", fake_store)
    return main.app


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health_and_liveness(live_app):
    async with _client(live_app) as client:
        health = await client.get("/api/health")
        live = await client.get("/api/health/live")

    assert health.status_code == 200
    assert health.json()["store"] == "fake"
    assert health.json()["store_ready"] is True
    assert "X-Request-ID" in health.headers
    assert live.json() == {"status": "alive", "service": "missioncontrol"}


@pytest.mark.asyncio
async def test_readiness_requires_data_and_scheduler(live_app):
    async with _client(live_app) as client:
        resp = await client.get("/api/health/ready")

    assert resp.status_code == 503
    assert resp.json()["status"] == "not_ready"


@pytest.mark.asyncio
async def test_metrics_endpoint_counts_requests(live_app):
    async with _client(live_app) as client:
        await client.get("/api/health/live", headers={"x-request-id": "req-1"})
        resp = await client.get("/api/metrics")

    snap = resp.json()["metrics"]
    assert snap["path_counts"]["/api/health/live"] >= 1
    assert snap["requests_total"] >= 1


def test_websocket_ping_pong():
    app = FastAPI()
    app.include_router(websocket_router)

    with TestClient(app).websocket_connect("/ws/dashboard") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "ack"}


class _Socket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict] = []

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("closed")
        self.sent.append(message)


@pytest.mark.asyncio
async def test_connection_manager_broadcasts_events_and_drops_dead_sockets():
    manager = ConnectionManager()
    good, dead = _Socket(), _Socket(fail=True)
    manager.connections.update({good, dead})

    await manager.on_dashboard_event("risk_resolved", {"risk_id": "r1"})

    assert good.sent[0]["type"] == "risk_resolved"
    assert good.sent[0]["data"] == {"risk_id": "r1"}
    assert "timestamp" in good.sent[0]
    assert manager.connection_count == 1
