"""Risk assessment model: risks detected upstream, resolvable from the dashboard."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, String, Text as SAText, func
from sqlalchemy.orm import Mapped, mapped_column
from pydantic import AliasChoices, Field

from missioncontrol.database import Base
from missioncontrol.models.common import (
    FlagDefaultTrue,
    Names,
    OptionalText,
    RecordId,
    Severity,
    StoreRecord,
    Text,
    Timestamp,
)


class RiskAssessment(Base):
    __tablename__ = "risk_assessments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    risk_type: Mapped[str] = mapped_column(String(50), default="delivery")
    severity: Mapped[str] = mapped_column(String(20), index=True)
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(SAText, nullable=True)
    affected_team_members: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    related_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    suggested_action: Mapped[Optional[str]] = mapped_column(SAText, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    detected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class RiskAssessmentRecord(StoreRecord):
    id: RecordId
    risk_type: Text = Field(default="", validation_alias=AliasChoices("risk_type", "category"))
    severity: Severity = "low"
    title: Text = ""
    description: OptionalText = None
    affected_team_members: Names = []
    related_data: dict[str, Any] | None = None
    suggested_action: OptionalText = None
    is_active: FlagDefaultTrue = True
    detected_at: Timestamp = None
    resolved_at: Timestamp = None
    created_at: Timestamp = None

    @property
    def seen_at(self) -> datetime | None:
        """When the risk surfaced: detection time, else row creation."""
        return self.detected_at or self.created_at
