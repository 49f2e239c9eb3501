"""Status bar: connection state and headline counts for the page header."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StatusBarView(BaseModel):
    status: str
    label: str
    tone: str
    error: Optional[str] = None
    risk_count: int = 0
    team_count: int = 0
    last_updated: Optional[datetime] = None


def build_status_bar(
    status: str,
    error: Optional[str],
    refreshing: bool,
    risk_count: int,
    team_count: int,
    last_updated: Optional[datetime],
) -> StatusBarView:
    if status == "error":
        label, tone = "ERROR", "red"
    elif status == "loading" or refreshing:
        label, tone = "SYNC", "amber"
    else:
        label, tone = "LIVE", "green"

    return StatusBarView(
        status=status,
        label=label,
        tone=tone,
        error=error,
        risk_count=risk_count,
        team_count=team_count,
        last_updated=last_updated,
    )
