"""Dashboard page: composes every panel for one render pass."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable

from pydantic import BaseModel, SerializeAsAny

from missioncontrol.aggregator import DashboardAggregator, DashboardSnapshot
from missioncontrol.utils.time import utc_now
from missioncontrol.widgets.base import Panel, PanelView, RowExpansion
from missioncontrol.widgets.client_watch import ClientWatchPanel
from missioncontrol.widgets.delivery_risks import DeliveryRisksPanel
from missioncontrol.widgets.next_actions import NextActionsPanel
from missioncontrol.widgets.project_radar import ProjectRadarPanel
from missioncontrol.widgets.risk_heatmap import RiskHeatmapPanel
from missioncontrol.widgets.status_bar import StatusBarView, build_status_bar
from missioncontrol.widgets.team_pulse import TeamPulsePanel

# Page layout order.
PANELS: tuple[type[Panel], ...] = (
    RiskHeatmapPanel,
    TeamPulsePanel,
    DeliveryRisksPanel,
    ProjectRadarPanel,
    ClientWatchPanel,
    NextActionsPanel,
)
PANEL_NAMES = tuple(panel.name for panel in PANELS)

_INPUTS: dict[str, Callable[[DashboardSnapshot], list]] = {
    RiskHeatmapPanel.name: lambda snap: snap.risks,
    TeamPulsePanel.name: lambda snap: snap.team,
    DeliveryRisksPanel.name: lambda snap: snap.prs,
    ProjectRadarPanel.name: lambda snap: snap.emails,
    ClientWatchPanel.name: lambda snap: snap.emails,
    NextActionsPanel.name: lambda snap: snap.actions,
}


class DashboardView(BaseModel):
    status_bar: StatusBarView
    panels: dict[str, SerializeAsAny[PanelView]]
    rendered_at: datetime


def parse_expanded(values: Iterable[str]) -> dict[str, set[str]]:
    """Split `panel:row` tokens per panel; a bare row id applies to every panel."""
    per_panel: dict[str, set[str]] = {name: set() for name in PANEL_NAMES}
    for value in values:
        for token in str(value).split(","):
            token = token.strip()
            if not token:
                continue
            panel, sep, row_id = token.partition(":")
            if sep and panel in per_panel:
                per_panel[panel].add(row_id)
            else:
                for ids in per_panel.values():
                    ids.add(token)
    return per_panel


class DashboardPage:
    """One page session: a widget instance per panel, each with its own expansion."""

    def __init__(self, expanded: Iterable[str] = ()) -> None:
        seeds = parse_expanded(expanded)
        self.panels: dict[str, Panel] = {
            panel.name: panel(RowExpansion(seeds[panel.name])) for panel in PANELS
        }

    def render_panel(
        self,
        name: str,
        aggregator: DashboardAggregator,
        now: datetime | None = None,
    ) -> PanelView:
        snapshot = aggregator.snapshot
        now = now or utc_now()
        return self.panels[name].render(
            _INPUTS[name](snapshot),
            now,
            slack_messages=snapshot.slack_messages,
            pending=set(aggregator.pending_resolutions),
        )

    def render(self, aggregator: DashboardAggregator, now: datetime | None = None) -> DashboardView:
        now = now or utc_now()
        snapshot = aggregator.snapshot
        panels = {name: self.render_panel(name, aggregator, now) for name in self.panels}
        status_bar = build_status_bar(
            status=aggregator.status.value,
            error=aggregator.error,
            refreshing=aggregator.is_refreshing,
            risk_count=panels[RiskHeatmapPanel.name].total,
            team_count=len(snapshot.team),
            last_updated=aggregator.last_updated,
        )
        return DashboardView(status_bar=status_bar, panels=panels, rendered_at=now)
