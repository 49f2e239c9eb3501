"""SQLAlchemy record store for local and self-hosted databases."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import desc, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from missioncontrol.database import Base
from missioncontrol.models.email import Email
from missioncontrol.models.github import GithubActivity
from missioncontrol.models.risk import RiskAssessment
from missioncontrol.models.team import SlackMessage, TeamMember
from missioncontrol.store.base import Collection, RecordNotFoundError, RecordStore, StoreError

logger = logging.getLogger("missioncontrol.store.sql")

_TABLES: dict[str, type[Base]] = {
    "risk_assessments": RiskAssessment,
    "team_members": TeamMember,
    "github_activity": GithubActivity,
    "emails": Email,
    "slack_messages": SlackMessage,
}


class SQLStore(RecordStore):
    """Reads the collections from tables mapped in `missioncontrol.models`.

    Each call opens its own session so concurrent fetches never share one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @property
    def store_name(self) -> str:
        return "sql"

    async def fetch_all(self, collection: Collection) -> list[dict[str, Any]]:
        model = _TABLES.get(collection.name)
        if model is None:
            raise StoreError(f"Unknown collection: {collection.name}")

        table = model.__table__
        query = select(table).order_by(desc(table.c[collection.order_column]))
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"{collection.name}: {e}") from e

    async def resolve_risk(self, risk_id: str, resolved_at: datetime) -> None:
        stmt = (
            update(RiskAssessment)
            .where(RiskAssessment.id == risk_id)
            .values(is_active=False, resolved_at=resolved_at)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"resolve {risk_id}: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"Risk assessment {risk_id} not found")

    async def is_empty(self) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(select(RiskAssessment.id).limit(1))
            return result.first() is None

    async def health_check(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.exception("database readiness check failed")
            return False
