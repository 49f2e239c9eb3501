"""Team member and Slack message models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text as SAText, func
from sqlalchemy.orm import Mapped, mapped_column
from pydantic import AliasChoices, Field

from missioncontrol.database import Base
from missioncontrol.models.common import (
    Count,
    FlagDefaultFalse,
    FloatHistory,
    LowerText,
    OptionalText,
    RecordId,
    Score,
    StoreRecord,
    Text,
    Timestamp,
)


class TeamMember(Base):
    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    slack_display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    github_username: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    after_hours_message_count: Mapped[int] = mapped_column(Integer, default=0)
    sentiment_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sentiment_trend: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    is_at_risk: Mapped[bool] = mapped_column(Boolean, default=False)
    last_active: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class SlackMessage(Base):
    __tablename__ = "slack_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    message_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    user_name: Mapped[str] = mapped_column(String(200), index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    channel: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    message_text: Mapped[str] = mapped_column(SAText, default="")
    sentiment: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sentiment_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_after_hours: Mapped[bool] = mapped_column(Boolean, default=False)
    has_urgent_keyword: Mapped[bool] = mapped_column(Boolean, default=False)
    reply_count: Mapped[int] = mapped_column(Integer, default=0)
    reaction_count: Mapped[int] = mapped_column(Integer, default=0)
    timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class TeamMemberRecord(StoreRecord):
    id: RecordId
    name: Text = ""
    email: OptionalText = None
    slack_display_name: OptionalText = None
    github_username: OptionalText = None
    role: Text = ""
    after_hours_message_count: Count = 0
    sentiment_score: Score = None
    sentiment_trend: FloatHistory = None
    is_at_risk: FlagDefaultFalse = False
    last_active: Timestamp = None
    created_at: Timestamp = None

    @property
    def current_sentiment(self) -> float | None:
        """Explicit score when present, otherwise the newest trend sample."""
        if self.sentiment_score is not None:
            return self.sentiment_score
        if self.sentiment_trend:
            return self.sentiment_trend[-1]
        return None

    @property
    def handles(self) -> set[str]:
        """Names this member may appear under as a Slack author."""
        return {h.lower() for h in (self.name, self.slack_display_name) if h}


class SlackMessageRecord(StoreRecord):
    id: RecordId
    user_name: Text = Field(default="", validation_alias=AliasChoices("user_name", "user", "author"))
    channel: OptionalText = None
    message_text: Text = Field(default="", validation_alias=AliasChoices("message_text", "content"))
    sentiment: LowerText = None
    sentiment_score: Score = None
    is_after_hours: FlagDefaultFalse = False
    has_urgent_keyword: FlagDefaultFalse = False
    reply_count: Count = 0
    reaction_count: Count = 0
    timestamp: Timestamp = None
    created_at: Timestamp = None

    @property
    def sent_at(self) -> datetime | None:
        return self.timestamp or self.created_at
