"""Project radar: emails worth a look, negative and awaiting-reply first."""

from __future__ import annotations

from typing import Any

from missioncontrol.models.email import EmailRecord
from missioncontrol.scoring.classifiers import email_urgency, is_negative, is_positive
from missioncontrol.utils.time import time_ago
from missioncontrol.widgets.base import Panel, PanelRow, RenderContext, epoch, iso


def email_tags(email: EmailRecord) -> list[str]:
    tags = []
    if is_negative(email.sentiment, email.sentiment_score):
        tags.append("negative")
    elif is_positive(email.sentiment, email.sentiment_score):
        tags.append("positive")
    if email.requires_reply:
        tags.append("reply")
    return tags


def _radar_rank(email: EmailRecord) -> int:
    if is_negative(email.sentiment, email.sentiment_score):
        return 2
    if email.requires_reply:
        return 1
    return 0


class ProjectRadarPanel(Panel):
    name = "project_radar"
    title = "Project Radar"
    empty_message = "No flagged items"
    record_model = EmailRecord

    def include(self, email: EmailRecord, ctx: RenderContext) -> bool:
        return bool(email_tags(email))

    def is_flagged(self, email: EmailRecord, ctx: RenderContext) -> bool:
        return _radar_rank(email) > 0

    def recency(self, email: EmailRecord):
        return email.arrived_at

    def sort_key(self, email: EmailRecord, ctx: RenderContext) -> tuple:
        return (-_radar_rank(email), -epoch(email.arrived_at))

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        tags = [email_tags(email) for email in visible]
        return {
            "flagged": len(visible),
            "negative": sum(1 for t in tags if "negative" in t),
            "awaiting_reply": sum(1 for t in tags if "reply" in t),
            "positive": sum(1 for t in tags if "positive" in t),
        }

    def build_row(self, email: EmailRecord, ctx: RenderContext) -> PanelRow:
        tags = email_tags(email)
        if "negative" in tags:
            tone = "red"
        elif "reply" in tags:
            tone = "amber"
        else:
            tone = "green"
        return PanelRow(
            id=email.id,
            title=email.subject or "(no subject)",
            subtitle=email.sender,
            badge=tags[0] if tags else None,
            tone=tone,
            meta={"tags": tags, "age": time_ago(email.arrived_at, ctx.now)},
        )

    def details(self, email: EmailRecord, ctx: RenderContext) -> dict[str, Any]:
        return {
            "from_address": email.from_address,
            "body": email.body,
            "urgency_score": email_urgency(email),
            "received_at": iso(email.arrived_at),
        }
