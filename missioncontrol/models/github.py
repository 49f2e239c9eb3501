"""GitHub activity model: pull requests and their review state."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column
from pydantic import AliasChoices, Field

from missioncontrol.database import Base
from missioncontrol.models.common import (
    Count,
    LowerText,
    OptionalText,
    RecordId,
    Score,
    StoreRecord,
    Text,
    Timestamp,
)


class GithubActivity(Base):
    __tablename__ = "github_activity"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type: Mapped[str] = mapped_column(String(50), default="pull_request")
    title: Mapped[str] = mapped_column(String(500))
    author: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    repo: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="open", index=True)
    days_open: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class GithubActivityRecord(StoreRecord):
    id: RecordId
    type: Text = "pull_request"
    title: Text = Field(default="", validation_alias=AliasChoices("title", "pr_title"))
    author: Text = ""
    repo: Text = ""
    status: LowerText = None
    days_open: Score = None
    review_count: Count = 0
    url: OptionalText = None
    created_at: Timestamp = None
    updated_at: Timestamp = None

    @property
    def is_open_pull_request(self) -> bool:
        kind = (self.type or "pull_request").lower()
        return kind in {"pull_request", "pr"} and self.status == "open"
