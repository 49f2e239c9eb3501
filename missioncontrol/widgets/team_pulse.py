"""Team pulse: per-member sentiment, activity and at-risk flags."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from missioncontrol.models.team import SlackMessageRecord, TeamMemberRecord
from missioncontrol.scoring.classifiers import (
    NEGATIVE_SENTIMENT_BELOW,
    sentiment_label,
    sentiment_tone,
    sentiment_trend,
)
from missioncontrol.widgets.base import Panel, PanelRow, RenderContext, epoch, iso

SPARKLINE_POINTS = 10


def member_activity(
    team: list[TeamMemberRecord],
    messages: Any,
) -> dict[str, dict[str, Any]]:
    """Message count, after-hours count and sentiment sparkline per member id."""
    activity: dict[str, dict[str, Any]] = {
        member.id: {"messages": 0, "after_hours": 0, "sparkline": []} for member in team
    }
    if not isinstance(messages, (list, tuple)):
        return activity

    by_handle: dict[str, str] = {}
    for member in team:
        for handle in member.handles:
            by_handle.setdefault(handle, member.id)

    scored: dict[str, list[tuple[float, float]]] = defaultdict(list)
    for message in messages:
        if not isinstance(message, SlackMessageRecord):
            continue
        member_id = by_handle.get(message.user_name.lower())
        if member_id is None:
            continue
        stats = activity[member_id]
        stats["messages"] += 1
        if message.is_after_hours:
            stats["after_hours"] += 1
        if message.sentiment_score is not None:
            scored[member_id].append((epoch(message.sent_at), message.sentiment_score))

    for member_id, points in scored.items():
        points.sort(key=lambda point: point[0])
        activity[member_id]["sparkline"] = [score for _, score in points[-SPARKLINE_POINTS:]]
    return activity


def initials(name: str) -> str:
    return "".join(part[0] for part in name.split() if part)[:2].upper()


class TeamPulsePanel(Panel):
    name = "team_pulse"
    title = "Team Pulse"
    empty_message = "No team data available"
    record_model = TeamMemberRecord

    def prepare(self, records: list, ctx: RenderContext) -> RenderContext:
        ctx.extras["activity"] = member_activity(records, ctx.extras.get("slack_messages"))
        return ctx

    def is_flagged(self, member: TeamMemberRecord, ctx: RenderContext) -> bool:
        score = member.current_sentiment
        return member.is_at_risk or (score is not None and score < NEGATIVE_SENTIMENT_BELOW)

    def recency(self, member: TeamMemberRecord):
        return member.last_active or member.created_at

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        return {
            "members": len(visible),
            "at_risk": sum(1 for member in visible if self.is_flagged(member, ctx)),
            "after_hours": sum(member.after_hours_message_count for member in visible),
        }

    def _trend(self, member: TeamMemberRecord, stats: dict[str, Any]):
        history = member.sentiment_trend if member.sentiment_trend and len(member.sentiment_trend) >= 2 else stats["sparkline"]
        return sentiment_trend(history)

    def build_row(self, member: TeamMemberRecord, ctx: RenderContext) -> PanelRow:
        stats = ctx.extras["activity"].get(member.id, {"messages": 0, "after_hours": 0, "sparkline": []})
        score = member.current_sentiment
        return PanelRow(
            id=member.id,
            title=member.name or "Unknown member",
            subtitle=member.role,
            badge=sentiment_label(score),
            tone=sentiment_tone(score),
            meta={
                "initials": initials(member.name),
                "messages": stats["messages"],
                "sentiment": score,
                "trend": self._trend(member, stats),
            },
        )

    def details(self, member: TeamMemberRecord, ctx: RenderContext) -> dict[str, Any]:
        stats = ctx.extras["activity"].get(member.id, {"messages": 0, "after_hours": 0, "sparkline": []})
        return {
            "email": member.email,
            "github_username": member.github_username,
            "after_hours_message_count": member.after_hours_message_count,
            "after_hours_messages_seen": stats["after_hours"],
            "sentiment_history": member.sentiment_trend or [],
            "sparkline": stats["sparkline"],
            "last_active": iso(member.last_active),
        }
