#!/usr/bin/env python3
"""End-to-end smoke for the Mission Control API.

Walks the dashboard flow against a running server (demo data or Supabase)
and fails fast on regressions.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass

import httpx

BASE_URL = os.environ.get("MISSIONCONTROL_URL", "http://127.0.0.1:8000")
TIMEOUT = 30.0
PANELS = ("risk_heatmap", "team_pulse", "delivery_risks", "project_radar", "client_watch", "next_actions")


@dataclass
class SmokeState:
    risk_id: str | None = None
    active_before: int = 0


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def get(client: httpx.Client, path: str, expected: int = 200, **kwargs):
    resp = client.get(f"{BASE_URL}{path}", **kwargs)
    expect(resp.status_code == expected, f"GET {path} -> {resp.status_code} != {expected}; body={resp.text[:500]}")
    return resp


def post(client: httpx.Client, path: str, expected: int = 200, **kwargs):
    resp = client.post(f"{BASE_URL}{path}", **kwargs)
    expect(resp.status_code == expected, f"POST {path} -> {resp.status_code} != {expected}; body={resp.text[:500]}")
    return resp


def main() -> int:
    state = SmokeState()
    with httpx.Client(timeout=TIMEOUT) as client:
        # 1) Health
        health = get(client, "/api/health").json()
        expect(health.get("store_ready") is True, "store is not reachable")

        # 2) Force a refresh so the page has data
        refreshed = post(client, "/api/dashboard/refresh").json()
        expect(refreshed.get("status") == "loaded", f"refresh left status={refreshed.get('status')}")

        # 3) Full page
        page = get(client, "/api/dashboard").json()
        expect(set(page.get("panels", {})) == set(PANELS), "dashboard is missing panels")
        expect(page["status_bar"]["label"] == "LIVE", "status bar is not LIVE after refresh")

        heatmap = page["panels"]["risk_heatmap"]
        state.active_before = heatmap["total"]
        if heatmap["rows"]:
            state.risk_id = heatmap["rows"][0]["id"]

        # 4) Each panel on its own, one row expanded
        for name in PANELS:
            panel = get(client, f"/api/dashboard/panels/{name}").json()
            expect(panel.get("name") == name, f"panel {name} returned {panel.get('name')}")
            if panel["rows"]:
                row_id = panel["rows"][0]["id"]
                expanded = get(client, f"/api/dashboard/panels/{name}", params={"expand": f"{name}:{row_id}"}).json()
                expect(expanded["rows"][0]["expanded"] is True, f"{name} row {row_id} did not expand")

        actions = get(client, "/api/actions").json()
        expect(isinstance(actions, list), "actions payload is not a list")

        # 5) Resolve the top risk
        if state.risk_id:
            resolved = post(client, f"/api/risks/{state.risk_id}/resolve").json()
            expect(resolved.get("resolved") is True, "risk was not resolved")
            after = get(client, "/api/dashboard/panels/risk_heatmap").json()
            expect(after["total"] == state.active_before - 1, "resolved risk still counted as active")

        # 6) Negative test sanity
        _ = get(client, "/api/dashboard/panels/does-not-exist", expected=404)
        _ = post(client, "/api/risks/00000000-0000-0000-0000-000000000000/resolve", expected=404)

    print(json.dumps({"ok": True, "message": "Mission Control smoke passed"}))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as exc:  # noqa: BLE001
        print(json.dumps({"ok": False, "error": str(exc)}))
        sys.exit(1)
