import json
from datetime import datetime, timezone

import httpx
import pytest

from missioncontrol.aggregator import DashboardAggregator, PageStatus
from missioncontrol.config import settings
from missioncontrol.store.base import (
    EMAILS,
    GITHUB_ACTIVITY,
    RISK_ASSESSMENTS,
    SLACK_MESSAGES,
    TEAM_MEMBERS,
    RecordNotFoundError,
    StoreError,
)
from missioncontrol.store.demo_data import build_demo_rows, seed_demo_data
from missioncontrol.store.factory import build_store, prepare_store
from missioncontrol.store.sql import SQLStore
from missioncontrol.store.supabase import SupabaseStore

RESOLVED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _supabase(handler) -> SupabaseStore:
    return SupabaseStore(
        url="https://demo.supabase.co/",
        api_key="service-key",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


# ═══ Supabase REST store ═══


@pytest.mark.asyncio
async def test_supabase_fetch_all_requests_ordered_collection():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["apikey"] = request.headers.get("apikey")
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=[{"id": "e1", "subject": "Hello"}])

    rows = await _supabase(handler).fetch_all(EMAILS)

    assert rows == [{"id": "e1", "subject": "Hello"}]
    assert seen["path"] == "/rest/v1/emails"
    assert seen["params"] == {"select": "*", "order": "received_at.desc"}
    assert seen["apikey"] == "service-key"
    assert seen["auth"] == "Bearer service-key"


@pytest.mark.asyncio
async def test_supabase_fetch_all_error_status_raises_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Invalid API key"})

    with pytest.raises(StoreError) as exc:
        await _supabase(handler).fetch_all(RISK_ASSESSMENTS)

    assert "risk_assessments" in str(exc.value)
    assert "HTTP 401" in str(exc.value)
    assert "Invalid API key" in str(exc.value)


@pytest.mark.asyncio
async def test_supabase_fetch_all_transport_error_raises_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreError):
        await _supabase(handler).fetch_all(TEAM_MEMBERS)


@pytest.mark.asyncio
async def test_supabase_fetch_all_bad_payloads():
    def not_a_list(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"rows": []})

    def not_json(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    assert await _supabase(not_a_list).fetch_all(GITHUB_ACTIVITY) == []
    with pytest.raises(StoreError):
        await _supabase(not_json).fetch_all(GITHUB_ACTIVITY)


@pytest.mark.asyncio
async def test_supabase_resolve_risk_patches_one_row():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["prefer"] = request.headers.get("prefer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"id": "r1", "is_active": False}])

    await _supabase(handler).resolve_risk("r1", RESOLVED_AT)

    assert seen["method"] == "PATCH"
    assert seen["path"] == "/rest/v1/risk_assessments"
    assert seen["params"] == {"id": "eq.r1"}
    assert seen["prefer"] == "return=representation"
    assert seen["body"] == {"is_active": False, "resolved_at": "2024-05-01T12:00:00+00:00"}


@pytest.mark.asyncio
async def test_supabase_resolve_risk_no_match_or_failure():
    def empty(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    def denied(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "permission denied for table risk_assessments"})

    with pytest.raises(RecordNotFoundError):
        await _supabase(empty).resolve_risk("missing", RESOLVED_AT)

    with pytest.raises(StoreError) as exc:
        await _supabase(denied).resolve_risk("r1", RESOLVED_AT)
    assert not isinstance(exc.value, RecordNotFoundError)
    assert "permission denied" in str(exc.value)


@pytest.mark.asyncio
async def test_supabase_health_check():
    def ok(request: httpx.Request) -> httpx.Response:
        assert dict(request.url.params) == {"select": "id", "limit": "1"}
        return httpx.Response(200, json=[])

    def down(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    assert await _supabase(ok).health_check() is True
    assert await _supabase(down).health_check() is False
    assert await SupabaseStore(url="", api_key="").health_check() is False


# ═══ SQL store ═══


@pytest.mark.asyncio
async def test_sql_store_reads_seeded_collections_newest_first(session_factory):
    store = SQLStore(session_factory)
    assert await store.is_empty() is True

    written = await seed_demo_data(session_factory)

    assert written == 39
    assert await store.is_empty() is False
    assert len(await store.fetch_all(RISK_ASSESSMENTS)) == 5
    assert len(await store.fetch_all(TEAM_MEMBERS)) == 4
    assert len(await store.fetch_all(GITHUB_ACTIVITY)) == 5
    assert len(await store.fetch_all(SLACK_MESSAGES)) == 20

    emails = await store.fetch_all(EMAILS)
    assert [row["subject"] for row in emails][:2] == ["Milestone slipped again?", "Need the revised SOW by Friday"]


@pytest.mark.asyncio
async def test_sql_store_resolve_risk(session_factory):
    store = SQLStore(session_factory)
    await seed_demo_data(session_factory)
    risk_id = (await store.fetch_all(RISK_ASSESSMENTS))[0]["id"]

    await store.resolve_risk(risk_id, RESOLVED_AT)

    row = next(r for r in await store.fetch_all(RISK_ASSESSMENTS) if r["id"] == risk_id)
    assert row["is_active"] is False
    assert row["resolved_at"] is not None

    with pytest.raises(RecordNotFoundError):
        await store.resolve_risk("no-such-risk", RESOLVED_AT)


@pytest.mark.asyncio
async def test_sql_store_health_check(session_factory):
    assert await SQLStore(session_factory).health_check() is True


@pytest.mark.asyncio
async def test_aggregator_over_demo_database(session_factory):
    await seed_demo_data(session_factory)
    agg = DashboardAggregator(store=SQLStore(session_factory))

    assert await agg.refresh() is True

    assert agg.status == PageStatus.LOADED
    assert len(agg.snapshot.risks) == 5
    assert all(r.created_at.tzinfo is not None for r in agg.snapshot.risks)
    assert [a.source for a in agg.snapshot.actions] == ["risk_assessment"] * 3 + ["email"] * 3 + ["github"] * 3
    assert agg.snapshot.actions[0].priority == "critical"

    critical = next(r for r in agg.snapshot.risks if r.severity == "critical")
    await agg.mark_resolved(critical.id)
    await agg.refresh()
    assert critical.id not in [r.id for r in agg.snapshot.risks if r.is_active]


def test_demo_rows_cover_every_bucket():
    rows = build_demo_rows()
    kinds = {type(row).__name__ for row in rows}
    assert kinds == {"TeamMember", "RiskAssessment", "GithubActivity", "Email", "SlackMessage"}


# ═══ Store selection ═══


def test_build_store_prefers_supabase(monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", "https://demo.supabase.co")
    monkeypatch.setattr(settings, "supabase_anon_key", "anon")
    monkeypatch.setattr(settings, "supabase_service_role_key", "")
    store = build_store()
    assert isinstance(store, SupabaseStore)
    assert store.api_key == "anon"

    monkeypatch.setattr(settings, "supabase_url", "")
    assert isinstance(build_store(), SQLStore)


@pytest.mark.asyncio
async def test_prepare_store_seeds_empty_sql_store(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "auto_create_schema", False)
    monkeypatch.setattr(settings, "enable_demo_data", True)
    store = SQLStore(session_factory)

    await prepare_store(store)
    assert await store.is_empty() is False

    # Already populated: no second seed.
    await prepare_store(store)
    assert len(await store.fetch_all(RISK_ASSESSMENTS)) == 5


@pytest.mark.asyncio
async def test_prepare_store_ignores_remote_stores():
    await prepare_store(_supabase(lambda request: httpx.Response(500)))
