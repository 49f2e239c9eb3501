"""Dashboard API endpoints: page, panels, actions, refresh and risk resolution."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from missioncontrol.aggregator import DashboardAggregator, ResolutionInProgressError, aggregator
from missioncontrol.models.action import NextAction
from missioncontrol.store.base import RecordNotFoundError, StoreError
from missioncontrol.widgets.page import PANEL_NAMES, DashboardPage

logger = logging.getLogger("missioncontrol.api.dashboard")

router = APIRouter(prefix="/api", tags=["dashboard"])


def get_aggregator() -> DashboardAggregator:
    """Dependency returning the process-wide aggregator."""
    return aggregator


@router.get("/dashboard")
async def dashboard_page(
    expand: list[str] = Query(default=[]),
    agg: DashboardAggregator = Depends(get_aggregator),
):
    """Status bar plus every panel, rendered against a single reference time."""
    return DashboardPage(expanded=expand).render(agg)


@router.get("/dashboard/panels/{name}")
async def dashboard_panel(
    name: str,
    expand: list[str] = Query(default=[]),
    agg: DashboardAggregator = Depends(get_aggregator),
):
    if name not in PANEL_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown panel: {name}")
    return DashboardPage(expanded=expand).render_panel(name, agg)


@router.get("/actions", response_model=list[NextAction])
async def list_actions(agg: DashboardAggregator = Depends(get_aggregator)):
    return agg.snapshot.actions


@router.post("/dashboard/refresh")
async def refresh_dashboard(agg: DashboardAggregator = Depends(get_aggregator)):
    """Run a refresh now; a refresh already in flight is not duplicated."""
    updated = await agg.refresh()
    return {"updated": updated, **agg.state()}


@router.post("/risks/{risk_id}/resolve")
async def resolve_risk(
    risk_id: str,
    agg: DashboardAggregator = Depends(get_aggregator),
):
    try:
        await agg.mark_resolved(risk_id)
    except ResolutionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Risk assessment not found")
    except StoreError as e:
        raise HTTPException(status_code=502, detail=f"Failed to resolve risk: {e}")

    active = sum(1 for risk in agg.snapshot.risks if risk.is_active)
    return {"id": risk_id, "resolved": True, "active_risks": active}
