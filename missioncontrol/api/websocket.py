"""WebSocket endpoint pushing refresh and resolution notices to open dashboards."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from missioncontrol.utils.time import utc_now

router = APIRouter(tags=["websocket"])


class ConnectionManager:
    """Tracks connected dashboards and fans out aggregator events."""

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()
        self._heartbeat_interval = 30  # seconds

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)

    async def broadcast(self, message: dict) -> None:
        """Send to every client, dropping the ones that fail."""
        dead_connections: list[WebSocket] = []

        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception:
                dead_connections.append(ws)

        for ws in dead_connections:
            self.connections.discard(ws)

    async def on_dashboard_event(self, event: str, payload: dict) -> None:
        """Aggregator listener: 'snapshot' after each refresh, 'risk_resolved' after a resolution."""
        await self.broadcast({"type": event, "data": payload, "timestamp": utc_now().isoformat()})

    @property
    def connection_count(self) -> int:
        return len(self.connections)


manager = ConnectionManager()


@router.websocket("/ws/dashboard")
async def websocket_endpoint(websocket: WebSocket):
    await manager.connect(websocket)
    try:
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=manager._heartbeat_interval,
                )
                try:
                    msg = json.loads(data)
                except json.JSONDecodeError:
                    msg = {}

                if isinstance(msg, dict) and msg.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
                else:
                    await websocket.send_json({"type": "ack"})

            except asyncio.TimeoutError:
                try:
                    await websocket.send_json({"type": "heartbeat"})
                except Exception:
                    break

    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
