"""Risk heatmap: active risks grouped by severity, resolvable row by row."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from missioncontrol.models.common import SEVERITIES
from missioncontrol.models.risk import RiskAssessmentRecord
from missioncontrol.scoring.classifiers import SEVERITY_RANK, SEVERITY_TONE
from missioncontrol.utils.time import time_ago
from missioncontrol.widgets.base import Panel, PanelRow, PanelView, RenderContext, epoch, iso

TITLES_PER_CELL = 4


class HeatmapCell(BaseModel):
    severity: str
    label: str
    tone: str
    count: int
    titles: list[str]
    more: int = 0


class RiskHeatmapView(PanelView):
    cells: list[HeatmapCell] = []


class RiskHeatmapPanel(Panel):
    name = "risk_heatmap"
    title = "Risk Heatmap"
    empty_message = "No active risks"
    record_model = RiskAssessmentRecord
    view_class = RiskHeatmapView

    def include(self, risk: RiskAssessmentRecord, ctx: RenderContext) -> bool:
        return risk.is_active

    def is_flagged(self, risk: RiskAssessmentRecord, ctx: RenderContext) -> bool:
        return risk.severity in {"critical", "high"}

    def recency(self, risk: RiskAssessmentRecord):
        return risk.seen_at

    def sort_key(self, risk: RiskAssessmentRecord, ctx: RenderContext) -> tuple:
        return (SEVERITY_RANK[risk.severity], -epoch(risk.seen_at))

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        counts = {severity: 0 for severity in SEVERITIES}
        for risk in visible:
            counts[risk.severity] += 1
        return counts

    def extra_fields(self, visible: list, ctx: RenderContext) -> dict[str, Any]:
        cells = []
        for severity in SEVERITIES:
            items = sorted(
                (risk for risk in visible if risk.severity == severity),
                key=lambda risk: -epoch(risk.seen_at),
            )
            cells.append(
                HeatmapCell(
                    severity=severity,
                    label=severity.upper(),
                    tone=SEVERITY_TONE[severity],
                    count=len(items),
                    titles=[risk.title for risk in items[:TITLES_PER_CELL]],
                    more=max(0, len(items) - TITLES_PER_CELL),
                )
            )
        return {"cells": cells}

    def build_row(self, risk: RiskAssessmentRecord, ctx: RenderContext) -> PanelRow:
        pending = ctx.extras.get("pending") or set()
        subtitle = " • ".join(part for part in (risk.risk_type, time_ago(risk.seen_at, ctx.now)) if part)
        return PanelRow(
            id=risk.id,
            title=risk.title or "Untitled risk",
            subtitle=subtitle,
            badge=risk.severity.upper(),
            tone=SEVERITY_TONE[risk.severity],
            pending=risk.id in pending,
        )

    def details(self, risk: RiskAssessmentRecord, ctx: RenderContext) -> dict[str, Any]:
        return {
            "risk_type": risk.risk_type,
            "description": risk.description,
            "suggested_action": risk.suggested_action,
            "affected_team_members": risk.affected_team_members,
            "detected_at": iso(risk.seen_at),
        }
