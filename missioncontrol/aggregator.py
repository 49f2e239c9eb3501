"""Dashboard data aggregator: fetches the five collections and derives actions.

Holds the last successfully fetched snapshot in memory. A failed refresh
flips the page into the error state but never touches the snapshot, so the
widgets keep rendering stale-but-available data.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError

from missioncontrol.actions.rules import derive_next_actions
from missioncontrol.models.action import NextAction
from missioncontrol.models.email import EmailRecord
from missioncontrol.models.github import GithubActivityRecord
from missioncontrol.models.risk import RiskAssessmentRecord
from missioncontrol.models.team import SlackMessageRecord, TeamMemberRecord
from missioncontrol.observability.metrics import metrics
from missioncontrol.store.base import COLLECTIONS, Collection, RecordStore, StoreError
from missioncontrol.utils.time import utc_now

logger = logging.getLogger("missioncontrol.aggregator")

Listener = Callable[[str, dict], Awaitable[None]]


class PageStatus(str, enum.Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class ResolutionInProgressError(Exception):
    """A resolution for this risk is already in flight."""


@dataclass(frozen=True)
class DashboardSnapshot:
    """One consistent set of fetched collections and the actions derived from them."""

    risks: list[RiskAssessmentRecord] = field(default_factory=list)
    team: list[TeamMemberRecord] = field(default_factory=list)
    prs: list[GithubActivityRecord] = field(default_factory=list)
    emails: list[EmailRecord] = field(default_factory=list)
    slack_messages: list[SlackMessageRecord] = field(default_factory=list)
    actions: list[NextAction] = field(default_factory=list)
    fetched_at: Optional[datetime] = None


_RECORD_MODELS: dict[str, type[BaseModel]] = {
    "risk_assessments": RiskAssessmentRecord,
    "team_members": TeamMemberRecord,
    "github_activity": GithubActivityRecord,
    "emails": EmailRecord,
    "slack_messages": SlackMessageRecord,
}


def parse_records(collection: Collection, rows: Any) -> list:
    """Validate raw rows, dropping anything that is not a usable record."""
    if not isinstance(rows, list):
        logger.warning("Collection payload is not a list; treating as empty", extra={"collection": collection.name})
        return []

    model = _RECORD_MODELS[collection.name]
    records = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping non-mapping row", extra={"collection": collection.name})
            continue
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed row {row.get('id')!r}: {e.error_count()} errors",
                extra={"collection": collection.name},
            )
    return records


class DashboardAggregator:
    """Polls the record store and exposes the latest snapshot and page state.

    Refreshes are all-or-nothing: the five reads run concurrently and a
    single failure discards the whole batch. Overlapping refreshes are
    skipped rather than queued.
    """

    def __init__(self, store: RecordStore | None = None) -> None:
        self._store = store
        self.snapshot = DashboardSnapshot()
        self.status = PageStatus.LOADING
        self.error: Optional[str] = None
        self.last_updated: Optional[datetime] = None
        self.pending_resolutions: set[str] = set()
        # Resolved locally but possibly still active in a racing fetch.
        self._resolved_ids: set[str] = set()
        self._refresh_lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            from missioncontrol.store.factory import build_store

            self._store = build_store()
        return self._store

    @store.setter
    def store(self, value: RecordStore) -> None:
        self._store = value

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def refresh(self) -> bool:
        """Fetch every collection; returns True when a new snapshot was stored."""
        if self._refresh_lock.locked():
            logger.info("Refresh already in flight; skipping")
            metrics.observe_refresh("skipped")
            return False

        async with self._refresh_lock:
            updated = await self._fetch_and_store()

        await self._notify("snapshot", self.state())
        return updated

    async def _fetch_and_store(self) -> bool:
        start = time.perf_counter()
        try:
            payloads = await asyncio.gather(
                *(self.store.fetch_all(collection) for collection in COLLECTIONS)
            )
            now = utc_now()
            snapshot = self._build_snapshot(payloads, now)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            self.error = str(e) or "Failed to fetch data"
            self.status = PageStatus.ERROR
            metrics.observe_refresh("failure", duration_ms)
            logger.exception(f"Refresh failed after {duration_ms}ms; keeping previous data")
            return False

        self.snapshot = snapshot
        self.last_updated = now
        self.error = None
        self.status = PageStatus.LOADED

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        metrics.observe_refresh("success", duration_ms)
        logger.info(
            f"Refresh complete in {duration_ms}ms: {len(self.snapshot.risks)} risks, "
            f"{len(self.snapshot.team)} team, {len(self.snapshot.prs)} PRs, "
            f"{len(self.snapshot.emails)} emails, {len(self.snapshot.actions)} actions"
        )
        return True

    def _build_snapshot(self, payloads: list[Any], now: datetime) -> DashboardSnapshot:
        parsed = {
            collection.name: parse_records(collection, rows)
            for collection, rows in zip(COLLECTIONS, payloads)
        }

        # Locally resolved ids that were deleted upstream have nothing left to hide.
        self._resolved_ids &= {risk.id for risk in parsed["risk_assessments"]}

        risks: list[RiskAssessmentRecord] = []
        for risk in parsed["risk_assessments"]:
            if risk.id in self._resolved_ids:
                if risk.is_active:
                    continue
                # The store has caught up with the local resolution.
                self._resolved_ids.discard(risk.id)
            risks.append(risk)

        return DashboardSnapshot(
            risks=risks,
            team=parsed["team_members"],
            prs=parsed["github_activity"],
            emails=parsed["emails"],
            slack_messages=parsed["slack_messages"],
            actions=derive_next_actions(risks, parsed["emails"], parsed["github_activity"], now),
            fetched_at=now,
        )

    async def mark_resolved(self, risk_id: str) -> None:
        """Resolve one risk in the store, then drop it from the local snapshot.

        On failure the snapshot is left exactly as it was and the store
        error propagates to the caller.
        """
        if risk_id in self.pending_resolutions:
            raise ResolutionInProgressError(f"Risk {risk_id} is already being resolved")

        self.pending_resolutions.add(risk_id)
        try:
            await self.store.resolve_risk(risk_id, utc_now())
        except StoreError:
            metrics.observe_resolution(ok=False)
            logger.exception("Failed to mark risk resolved", extra={"risk_id": risk_id})
            raise
        finally:
            self.pending_resolutions.discard(risk_id)

        metrics.observe_resolution(ok=True)
        self._resolved_ids.add(risk_id)
        risks = [risk for risk in self.snapshot.risks if risk.id != risk_id]
        self.snapshot = replace(
            self.snapshot,
            risks=risks,
            actions=derive_next_actions(risks, self.snapshot.emails, self.snapshot.prs, utc_now()),
        )
        logger.info("Risk marked resolved", extra={"risk_id": risk_id})
        await self._notify("risk_resolved", {"risk_id": risk_id})

    def state(self) -> dict:
        return {
            "status": self.status.value,
            "error": self.error,
            "refreshing": self.is_refreshing,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    async def _notify(self, event: str, payload: dict) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, payload)
            except Exception as e:
                logger.error(f"Listener error for {event}: {e}")


# Global aggregator instance
aggregator = DashboardAggregator()
