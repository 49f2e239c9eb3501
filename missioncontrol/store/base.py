"""Base interfaces for the record store the dashboard reads from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


class StoreError(Exception):
    """A read or write against the backing store failed."""


class RecordNotFoundError(StoreError):
    """A targeted update matched no row."""


@dataclass(frozen=True)
class Collection:
    """A logical collection and the timestamp column it is ordered by (descending)."""

    name: str
    order_column: str


RISK_ASSESSMENTS = Collection("risk_assessments", "created_at")
TEAM_MEMBERS = Collection("team_members", "created_at")
GITHUB_ACTIVITY = Collection("github_activity", "updated_at")
EMAILS = Collection("emails", "received_at")
SLACK_MESSAGES = Collection("slack_messages", "created_at")

COLLECTIONS: tuple[Collection, ...] = (
    RISK_ASSESSMENTS,
    TEAM_MEMBERS,
    GITHUB_ACTIVITY,
    EMAILS,
    SLACK_MESSAGES,
)


class RecordStore(ABC):
    """Abstract base class for record stores."""

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Identifier for this store type."""
        ...

    @abstractmethod
    async def fetch_all(self, collection: Collection) -> list[dict[str, Any]]:
        """Select every row of a collection, newest first."""
        ...

    @abstractmethod
    async def resolve_risk(self, risk_id: str, resolved_at: datetime) -> None:
        """Set is_active=false and resolved_at on one risk assessment."""
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        return True
