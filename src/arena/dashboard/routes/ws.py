"""WebSocket hub broadcasting JSON tournament events to connected clients."""

from __future__ import annotations

import json
import time
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

log = structlog.get_logger(__name__)

router = APIRouter()


class DashboardHub:
    """Manages WebSocket connections and broadcasts messages to all clients."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.append(ws)
        log.info("dashboard_ws_connected", total=len(self.connections))

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        log.info("dashboard_ws_disconnected", total=len(self.connections))

    async def broadcast(self, message_type: str, data: Any) -> None:
        """Send ``{type, timestamp, data}`` to every client, dropping broken ones."""
        payload = json.dumps(
            {"type": message_type, "timestamp": int(time.time() * 1000), "data": data}
        )
        for ws in self.connections.copy():
            try:
                await ws.send_text(payload)
            except Exception:
                self.connections.remove(ws)
                log.warning("dashboard_ws_broadcast_error", remaining=len(self.connections))


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    ws_hub: DashboardHub = websocket.app.state.hub
    await ws_hub.connect(websocket)
    try:
        while True:
            # Consume messages to keep connection alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_hub.disconnect(websocket)
