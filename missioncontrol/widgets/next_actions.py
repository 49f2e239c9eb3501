"""Next actions: the derived suggestions, most urgent first."""

from __future__ import annotations

from typing import Any

from missioncontrol.models.action import NextAction
from missioncontrol.scoring.classifiers import PRIORITY_RANK
from missioncontrol.widgets.base import Panel, PanelRow, RenderContext, iso

PRIORITY_TONE = {"critical": "red", "high": "amber", "medium": "blue", "low": "green"}
SOURCE_LABELS = {"risk_assessment": "RISK", "email": "EMAIL", "github": "GITHUB", "slack": "SLACK"}


class NextActionsPanel(Panel):
    name = "next_actions"
    title = "Next Actions"
    empty_message = "No actions needed, all clear"
    record_model = NextAction

    def is_flagged(self, action: NextAction, ctx: RenderContext) -> bool:
        return action.priority in {"critical", "high"}

    def sort_key(self, action: NextAction, ctx: RenderContext) -> tuple:
        # Stable sort: same-priority actions keep their rule order.
        return (PRIORITY_RANK[action.priority],)

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        counts = {priority: 0 for priority in PRIORITY_RANK}
        for action in visible:
            counts[action.priority] += 1
        return counts

    def build_row(self, action: NextAction, ctx: RenderContext) -> PanelRow:
        return PanelRow(
            id=action.id,
            title=action.title,
            subtitle=action.description,
            badge=SOURCE_LABELS.get(action.source, action.source.upper()),
            tone=PRIORITY_TONE[action.priority],
            meta={"priority": action.priority},
        )

    def details(self, action: NextAction, ctx: RenderContext) -> dict[str, Any]:
        return {
            "source": action.source,
            "description": action.description,
            "created_at": iso(action.created_at),
        }
