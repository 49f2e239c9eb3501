"""Suggested next action: derived from the other collections, never persisted."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

ActionPriority = Literal["critical", "high", "medium", "low"]
ActionSource = Literal["risk_assessment", "email", "github"]


class NextAction(BaseModel):
    id: str
    title: str
    description: str
    priority: ActionPriority
    source: ActionSource
    created_at: datetime | None = None
