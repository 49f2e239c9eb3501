"""Shared test fixtures for Mission Control tests."""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from missioncontrol.database import Base
from missioncontrol.models import email, github, risk, team  # noqa: F401
from missioncontrol.store.base import Collection, RecordNotFoundError, RecordStore, StoreError
from missioncontrol.utils.time import utc_now


class FakeStore(RecordStore):
    """In-memory store with switchable failures and an optional gate on fetches."""

    def __init__(self, rows: dict[str, list[Any]] | None = None) -> None:
        self.rows: dict[str, Any] = {
            "risk_assessments": [],
            "team_members": [],
            "github_activity": [],
            "emails": [],
            "slack_messages": [],
        }
        self.rows.update(rows or {})
        self.failing: set[str] = set()
        self.fail_resolve = False
        self.fetch_calls = 0
        self.gate: asyncio.Event | None = None
        self.resolve_gate: asyncio.Event | None = None

    @property
    def store_name(self) -> str:
        return "fake"

    async def fetch_all(self, collection: Collection) -> list[dict[str, Any]]:
        self.fetch_calls += 1
        # Read before waiting so a gated fetch returns what it saw at call time.
        rows = copy.deepcopy(self.rows[collection.name])
        if self.gate is not None:
            await self.gate.wait()
        if collection.name in self.failing:
            raise StoreError(f"{collection.name}: HTTP 503 upstream unavailable")
        return rows

    async def resolve_risk(self, risk_id: str, resolved_at: datetime) -> None:
        if self.resolve_gate is not None:
            await self.resolve_gate.wait()
        if self.fail_resolve:
            raise StoreError(f"resolve {risk_id}: HTTP 500")
        for row in self.rows["risk_assessments"]:
            if str(row.get("id")) == risk_id:
                row["is_active"] = False
                row["resolved_at"] = resolved_at.isoformat()
                return
        raise RecordNotFoundError(f"Risk assessment {risk_id} not found")


@pytest.fixture
def now() -> datetime:
    return utc_now()


@pytest.fixture
def sample_rows(now: datetime) -> dict[str, list[dict[str, Any]]]:
    def ago(**kwargs) -> str:
        return (now - timedelta(**kwargs)).isoformat()

    return {
        "risk_assessments": [
            {"id": "r-crit", "risk_type": "delivery", "severity": "critical", "title": "Launch blocked",
             "description": "Payment sandbox down", "is_active": True, "created_at": ago(hours=2)},
            {"id": "r-high", "category": "burnout", "severity": "high", "title": "After-hours spike",
             "is_active": True, "created_at": ago(hours=5)},
            {"id": "r-low", "risk_type": "quality", "severity": "low", "title": "Flaky tests",
             "is_active": True, "created_at": ago(hours=1)},
            {"id": "r-done", "risk_type": "client", "severity": "critical", "title": "Old escalation",
             "is_active": False, "created_at": ago(days=3)},
        ],
        "team_members": [
            {"id": "t-1", "name": "Maya Chen", "role": "Tech Lead", "slack_display_name": "maya",
             "sentiment_trend": [0.8, 0.7, 0.5, 0.3], "is_at_risk": True, "after_hours_message_count": 12},
            {"id": "t-2", "name": "Jonas Weber", "role": "Backend", "sentiment_score": 0.75,
             "after_hours_message_count": 1},
        ],
        "github_activity": [
            {"id": "pr-9", "type": "pull_request", "title": "Payment retry", "author": "mchen",
             "repo": "shop", "status": "open", "created_at": ago(days=9, hours=1)},
            {"id": "pr-5", "type": "pull_request", "title": "Export refactor", "author": "jweber",
             "repo": "reports", "status": "open", "created_at": ago(days=5, hours=1)},
            {"id": "pr-1", "type": "pull_request", "title": "Dark mode", "author": "pnair",
             "repo": "admin", "status": "open", "created_at": ago(days=1)},
            {"id": "pr-m", "type": "pull_request", "title": "Merged thing", "author": "pnair",
             "repo": "admin", "status": "merged", "created_at": ago(days=20)},
        ],
        "emails": [
            {"id": "e-9", "subject": "Milestone slipped", "client_name": "Northwind", "from_address": "cto@nw.example",
             "urgency_score": 9, "sentiment": "negative", "requires_reply": True, "received_at": ago(hours=1)},
            {"id": "e-8", "subject": "Need SOW", "client_name": "Acme", "from_address": "pm@acme.example",
             "urgency_score": 8, "sentiment": "neutral", "received_at": ago(hours=3), "is_read": True},
            {"id": "e-3", "subject": "Great demo", "from_address": "lead@globex.example",
             "urgency_score": 3, "sentiment": "positive", "received_at": ago(hours=4)},
        ],
        "slack_messages": [
            {"id": "s-1", "user_name": "Maya Chen", "message_text": "blocked again", "sentiment_score": 0.2,
             "is_after_hours": True, "timestamp": ago(hours=3)},
            {"id": "s-2", "user": "maya", "content": "still blocked", "sentiment_score": 0.3,
             "timestamp": ago(hours=2)},
            {"id": "s-3", "author": "Jonas Weber", "content": "shipped", "sentiment_score": 0.9,
             "timestamp": ago(hours=1)},
        ],
    }


@pytest.fixture
def fake_store(sample_rows) -> FakeStore:
    return FakeStore(sample_rows)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A fresh SQLite file per test; each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missioncontrol.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def empty_store() -> FakeStore:
    return FakeStore()
