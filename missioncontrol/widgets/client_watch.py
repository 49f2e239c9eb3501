"""Client watch: every tracked email with its urgency band."""

from __future__ import annotations

from typing import Any

from missioncontrol.models.email import EmailRecord
from missioncontrol.scoring.classifiers import email_urgency, is_negative, urgency_band
from missioncontrol.utils.time import time_ago
from missioncontrol.widgets.base import Panel, PanelRow, RenderContext, epoch, iso

BAND_TONE = {"critical": "red", "high": "amber", "normal": "blue"}
BAND_RANK = {"critical": 0, "high": 1, "normal": 2}


class ClientWatchPanel(Panel):
    name = "client_watch"
    title = "Client Watch"
    empty_message = "No emails tracked"
    record_model = EmailRecord

    def is_flagged(self, email: EmailRecord, ctx: RenderContext) -> bool:
        return urgency_band(email_urgency(email)) != "normal" or is_negative(
            email.sentiment, email.sentiment_score
        )

    def recency(self, email: EmailRecord):
        return email.arrived_at

    def sort_key(self, email: EmailRecord, ctx: RenderContext) -> tuple:
        if self.is_flagged(email, ctx):
            return (0, BAND_RANK[urgency_band(email_urgency(email))], -epoch(email.arrived_at))
        return (1, 0, -epoch(email.arrived_at))

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        bands = [urgency_band(email_urgency(email)) for email in visible]
        return {
            "priority": sum(1 for band in bands if band != "normal"),
            "critical": bands.count("critical"),
            "negative": sum(1 for email in visible if is_negative(email.sentiment, email.sentiment_score)),
            "unread": sum(1 for email in visible if not email.is_read),
        }

    def build_row(self, email: EmailRecord, ctx: RenderContext) -> PanelRow:
        urgency = email_urgency(email)
        band = urgency_band(urgency)
        return PanelRow(
            id=email.id,
            title=email.subject or "(no subject)",
            subtitle=email.sender,
            badge=band.upper(),
            tone=BAND_TONE[band],
            meta={
                "urgency": urgency,
                "unread": not email.is_read,
                "negative": is_negative(email.sentiment, email.sentiment_score),
                "age": time_ago(email.arrived_at, ctx.now),
            },
        )

    def details(self, email: EmailRecord, ctx: RenderContext) -> dict[str, Any]:
        return {
            "from_address": email.from_address,
            "priority": email.priority,
            "requires_reply": email.requires_reply,
            "body": email.body,
            "received_at": iso(email.arrived_at),
        }
