from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from missioncontrol.aggregator import DashboardAggregator
from missioncontrol.api.dashboard import get_aggregator, router as dashboard_router


@pytest.fixture
def agg(fake_store) -> DashboardAggregator:
    return DashboardAggregator(store=fake_store)


@pytest.fixture
def dashboard_app(agg: DashboardAggregator):
    app = FastAPI()
    app.dependency_overrides[get_aggregator] = lambda: agg
    app.include_router(dashboard_router)
    return app


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_dashboard_before_first_refresh_is_loading(dashboard_app):
    async with _client(dashboard_app) as client:
        resp = await client.get("/api/dashboard")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status_bar"]["label"] == "SYNC"
    assert body["panels"]["risk_heatmap"]["empty_message"] == "No active risks"
    assert body["panels"]["next_actions"]["empty_message"] == "No actions needed, all clear"


@pytest.mark.asyncio
async def test_refresh_then_render_full_page(dashboard_app):
    async with _client(dashboard_app) as client:
        refreshed = await client.post("/api/dashboard/refresh")
        page = await client.get("/api/dashboard", params={"expand": ["risk_heatmap:r-crit", "pr-9"]})

    assert refreshed.status_code == 200
    assert refreshed.json()["updated"] is True
    assert refreshed.json()["status"] == "loaded"

    body = page.json()
    assert body["status_bar"]["label"] == "LIVE"
    heatmap = body["panels"]["risk_heatmap"]
    assert [cell["severity"] for cell in heatmap["cells"]] == ["critical", "high", "medium", "low"]
    assert heatmap["rows"][0]["id"] == "r-crit"
    assert heatmap["rows"][0]["expanded"] is True
    assert body["panels"]["delivery_risks"]["rows"][0]["details"] is not None


@pytest.mark.asyncio
async def test_single_panel_and_unknown_panel(dashboard_app, agg):
    await agg.refresh()

    async with _client(dashboard_app) as client:
        panel = await client.get("/api/dashboard/panels/delivery_risks")
        missing = await client.get("/api/dashboard/panels/weather")

    assert panel.status_code == 200
    assert panel.json()["counts"] == {"open": 3, "stale": 2, "critical": 1}
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_actions_endpoint(dashboard_app, agg):
    await agg.refresh()

    async with _client(dashboard_app) as client:
        resp = await client.get("/api/actions")

    actions = resp.json()
    assert resp.status_code == 200
    assert len(actions) == 6
    assert actions[0]["id"] == "action-risk-r-crit"
    assert actions[0]["priority"] == "critical"


@pytest.mark.asyncio
async def test_resolve_risk_success(dashboard_app, agg):
    await agg.refresh()

    async with _client(dashboard_app) as client:
        resp = await client.post("/api/risks/r-crit/resolve")
        page = await client.get("/api/dashboard/panels/risk_heatmap")

    assert resp.status_code == 200
    assert resp.json() == {"id": "r-crit", "resolved": True, "active_risks": 2}
    assert "r-crit" not in [row["id"] for row in page.json()["rows"]]


@pytest.mark.asyncio
async def test_resolve_risk_errors(dashboard_app, agg, fake_store):
    await agg.refresh()

    async with _client(dashboard_app) as client:
        missing = await client.post("/api/risks/nope/resolve")
        fake_store.fail_resolve = True
        failed = await client.post("/api/risks/r-high/resolve")

    assert missing.status_code == 404
    assert failed.status_code == 502
    assert "HTTP 500" in failed.json()["detail"]
    assert "r-high" in [r.id for r in agg.snapshot.risks]


@pytest.mark.asyncio
async def test_refresh_failure_reports_error_state(dashboard_app, agg, fake_store):
    await agg.refresh()
    fake_store.failing = {"github_activity"}

    async with _client(dashboard_app) as client:
        refreshed = await client.post("/api/dashboard/refresh")
        page = await client.get("/api/dashboard")

    assert refreshed.json()["updated"] is False
    assert refreshed.json()["status"] == "error"
    body = page.json()
    assert body["status_bar"]["label"] == "ERROR"
    assert "github_activity" in body["status_bar"]["error"]
    # previous data still rendered
    assert body["panels"]["delivery_risks"]["total"] == 3
