"""Client email model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, String, Text as SAText, func
from sqlalchemy.orm import Mapped, mapped_column

from missioncontrol.database import Base
from missioncontrol.models.common import (
    EmailPriority,
    FlagDefaultFalse,
    LowerText,
    OptionalText,
    RecordId,
    Score,
    StoreRecord,
    Text,
    Timestamp,
)


class Email(Base):
    __tablename__ = "emails"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject: Mapped[str] = mapped_column(String(500))
    from_address: Mapped[str] = mapped_column(String(255))
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    body: Mapped[Optional[str]] = mapped_column(SAText, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), default="normal")
    urgency_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sentiment: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sentiment_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    requires_reply: Mapped[bool] = mapped_column(Boolean, default=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class EmailRecord(StoreRecord):
    id: RecordId
    subject: Text = ""
    from_address: Text = ""
    client_name: OptionalText = None
    body: OptionalText = None
    priority: EmailPriority = "normal"
    urgency_score: Score = None
    sentiment: LowerText = None
    sentiment_score: Score = None
    requires_reply: FlagDefaultFalse = False
    is_read: FlagDefaultFalse = False
    received_at: Timestamp = None
    created_at: Timestamp = None

    @property
    def sender(self) -> str:
        return self.client_name or self.from_address or "unknown sender"

    @property
    def arrived_at(self) -> datetime | None:
        return self.received_at or self.created_at
