from __future__ import annotations

import logging

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

from theia.models.snapshot import PollSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


# ── WebSocket connection manager ──────────────────────


class ConnectionManager:
    """Tracks active WebSocket clients and broadcasts messages."""

    def __init__(self) -> None:
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, data: dict) -> None:
        dead: list[WebSocket] = []
        for ws in self.active_connections:
            try:
                await ws.send_json(data)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

    async def __call__(self, snapshot: PollSnapshot) -> None:
        """Poller renderer hook: push each snapshot to every client."""
        await self.broadcast({"type": "snapshot", "snapshot": snapshot.model_dump(mode="json")})


ws_manager = ConnectionManager()


def _snapshot(request: Request) -> PollSnapshot | None:
    poller = getattr(request.app.state, "poller", None)
    return poller.last_snapshot if poller else None


# ── REST routes ───────────────────────────────────────


@router.get("/api/connections")
async def get_connections(request: Request) -> list[dict]:
    snapshot = _snapshot(request)
    if not snapshot or snapshot.connections is None:
        return []
    return [c.model_dump(mode="json") for c in snapshot.connections]


@router.get("/api/processes")
async def get_processes(request: Request) -> list[dict]:
    snapshot = _snapshot(request)
    if not snapshot or snapshot.processes is None:
        return []
    return [p.model_dump(mode="json") for p in snapshot.processes]


@router.get("/api/status")
async def get_status(request: Request) -> dict:
    poller = request.app.state.poller
    snapshot = poller.last_snapshot
    return {
        "status": "running" if poller.running else "stopped",
        "os": poller.os_type.value,
        "kinds": [k.value for k in poller.kinds],
        "cycles": poller.cycles,
        "interval": poller.interval,
        "highlight_window": poller.highlight_window,
        "errors": {k.value: v for k, v in snapshot.errors.items()} if snapshot else {},
        "clients": len(ws_manager.active_connections),
    }


# ── WebSocket endpoint ────────────────────────────────


@router.websocket("/ws/snapshots")
async def websocket_snapshots(websocket: WebSocket) -> None:
    await ws_manager.connect(websocket)
    try:
        while True:
            # Keep connection alive; client can send pings or messages
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket)
