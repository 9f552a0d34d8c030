"""FastAPI dashboard server for the agent network."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from agent_network.core.drag_controller import PointerOutcome
from agent_network.core.view_model import AgentNetworkSession, create_session
from agent_network.dashboard.graph_converter import CytoscapeConverter
from agent_network.models.graph_model import UnknownNodeError

logger = logging.getLogger(__name__)


# WebSocket connection manager
class ConnectionManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        """Broadcast message to all connected clients."""
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping websocket after failed send: {e}")
                self.disconnect(connection)


class LayoutRequest(BaseModel):
    mode: str


class PointerRequest(BaseModel):
    type: Literal["down", "move", "up", "leave"]
    node_id: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None


class NodeRequest(BaseModel):
    node_id: str


def create_app(
    session: Optional[AgentNetworkSession] = None,
    push_interval_s: Optional[float] = 0.5,
) -> FastAPI:
    """Build the dashboard app around one session.

    Args:
        session: Session to serve (built from settings if omitted)
        push_interval_s: Seconds between websocket snapshot pushes;
            None disables the push loop

    Returns:
        FastAPI application; its lifespan starts and closes the session
    """
    session = session or create_session()
    manager = ConnectionManager()
    converter = CytoscapeConverter()

    def snapshot_message() -> Dict[str, Any]:
        return {"type": "snapshot", "snapshot": session.snapshot().model_dump(mode="json")}

    async def push_loop():
        while True:
            await asyncio.sleep(push_interval_s)
            if manager.active_connections:
                await manager.broadcast(snapshot_message())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session.initialize()
        session.start()
        task = asyncio.create_task(push_loop()) if push_interval_s else None
        logger.info("Agent network dashboard started")
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            session.close()

    app = FastAPI(title="Agent Network Dashboard", lifespan=lifespan)
    app.state.session = session
    app.state.manager = manager

    # Enable CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/network")
    async def get_network():
        """Current renderable snapshot."""
        return session.snapshot().model_dump(mode="json")

    @app.get("/api/network/cytoscape")
    async def get_network_cytoscape():
        """Current snapshot as Cytoscape elements."""
        return converter.snapshot_to_cytoscape(session.snapshot())

    @app.post("/api/network/layout")
    async def apply_layout(request: LayoutRequest):
        """Switch layout mode (unknown modes apply as circular)."""
        result = session.apply_layout(request.mode)
        if result is None:
            raise HTTPException(status_code=409, detail="Session is closed")
        await manager.broadcast({"type": "layout_changed", "mode": result.mode.value})
        return {
            "requested_mode": result.requested_mode,
            "mode": result.mode.value,
            "fallback": result.is_fallback,
            "omitted": result.omitted,
        }

    @app.post("/api/network/pointer")
    async def pointer_event(event: PointerRequest):
        """Forward a pointer event to the drag controller."""
        if event.type == "down":
            if event.node_id is None or event.x is None or event.y is None:
                raise HTTPException(status_code=400, detail="down requires node_id, x and y")
            outcome = session.pointer_down(event.node_id, event.x, event.y)
        elif event.type == "move":
            if event.x is None or event.y is None:
                raise HTTPException(status_code=400, detail="move requires x and y")
            outcome = session.pointer_move(event.x, event.y)
        elif event.type == "up":
            outcome = session.pointer_up(event.x, event.y)
        else:
            outcome = session.pointer_leave()

        if outcome is PointerOutcome.COMMITTED:
            await manager.broadcast({"type": "layout_changed", "mode": session.mode.value})
        return {
            "outcome": outcome.value,
            "mode": session.mode.value,
            "dragging_node_id": session.drag.dragging_node_id,
            "selected_id": session.selected_id,
        }

    @app.post("/api/network/double-click")
    async def double_click(request: NodeRequest):
        """Navigate to the agent's route, if it has one."""
        if not session.graph.has_node(request.node_id):
            raise HTTPException(status_code=404, detail=f"Agent {request.node_id} not found")
        outcome = session.double_click(request.node_id)
        route = session.graph.get_node(request.node_id).route
        return {
            "outcome": outcome.value,
            "route": route if outcome is PointerOutcome.NAVIGATED else None,
        }

    @app.post("/api/network/select")
    async def select_agent(request: NodeRequest):
        """Select an agent for the details panel."""
        try:
            details = session.select_node(request.node_id)
        except UnknownNodeError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return details.model_dump(mode="json")

    @app.get("/api/activity")
    async def get_activity():
        """Recent activity, newest first."""
        return [entry.model_dump(mode="json") for entry in session.refresh_activity()]

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for live snapshots."""
        await manager.connect(websocket)
        try:
            await websocket.send_json(snapshot_message())
            while True:
                data = await websocket.receive_json()

                if data.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
                elif data.get("type") == "snapshot":
                    await websocket.send_json(snapshot_message())

        except WebSocketDisconnect:
            manager.disconnect(websocket)

    return app


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
