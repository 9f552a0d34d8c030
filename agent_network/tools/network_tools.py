"""MCP tools for inspecting and driving the agent network.

Provides tools to:
- Read the renderable snapshot, the agent catalog and adjacency
- Switch layout modes and inspect or reset the saved arrangement
- Replay pointer interactions (drag, click, double-click)
- Select an agent for the details panel
"""

import logging
from typing import List

from mcp import Tool

from ..core.drag_controller import PointerOutcome
from ..core.view_model import AgentNetworkSession
from ..models.graph_model import UnknownNodeError
from ..models.layout_metadata import LayoutMode, positions_to_dict
from ..utils.response import error_response, exception_response, success_response

logger = logging.getLogger(__name__)

LAYOUT_MODES = [mode.value for mode in LayoutMode]


class NetworkTools:
    """Provides agent network visualization tools."""

    def __init__(self, session: AgentNetworkSession):
        """Initialize with the session the tools operate on.

        Args:
            session: Live agent network session
        """
        self.session = session

    def get_tools(self) -> List[Tool]:
        """Return agent network MCP tools."""
        return [
            Tool(
                name="network_get_snapshot",
                description="Get the current renderable state: layout mode, node positions and statuses, active edges, in-flight data flows, the selected agent and recent activity.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "include_activity": {
                            "type": "boolean",
                            "description": "Include the recent activity feed",
                            "default": True
                        }
                    }
                }
            ),
            Tool(
                name="network_list_agents",
                description="List all agents in catalog order with their route, status and declared connections",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            ),
            Tool(
                name="network_get_neighbors",
                description="Get the declared connections of an agent, split into resolvable and dangling IDs",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "node_id": {
                            "type": "string",
                            "description": "Agent ID"
                        }
                    },
                    "required": ["node_id"]
                }
            ),
            Tool(
                name="network_apply_layout",
                description="Switch the layout mode. Unknown modes, and custom without a complete saved arrangement, are applied as circular.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "mode": {
                            "type": "string",
                            "enum": LAYOUT_MODES,
                            "description": "Layout mode"
                        }
                    },
                    "required": ["mode"]
                }
            ),
            Tool(
                name="network_pointer",
                description="Send a pointer event. 'down' grabs an agent, 'move' drags it, 'up' or 'leave' releases it. A release without movement selects the agent instead of saving.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "event": {
                            "type": "string",
                            "enum": ["down", "move", "up", "leave"],
                            "description": "Pointer event type"
                        },
                        "node_id": {
                            "type": "string",
                            "description": "Agent under the pointer (required for 'down')"
                        },
                        "x": {
                            "type": "number",
                            "description": "Pointer x in canvas coordinates"
                        },
                        "y": {
                            "type": "number",
                            "description": "Pointer y in canvas coordinates"
                        }
                    },
                    "required": ["event"]
                }
            ),
            Tool(
                name="network_double_click",
                description="Double-click an agent: dispatches its navigation route if it has one",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "node_id": {
                            "type": "string",
                            "description": "Agent ID"
                        }
                    },
                    "required": ["node_id"]
                }
            ),
            Tool(
                name="network_select_agent",
                description="Select an agent and return its details (description, route, connected agents). Omit node_id to clear the selection.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "node_id": {
                            "type": "string",
                            "description": "Agent ID"
                        }
                    }
                }
            ),
            Tool(
                name="network_get_saved_layout",
                description="Get the persisted layout mode and custom positions",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            ),
            Tool(
                name="network_reset_layout",
                description="Forget the saved arrangement and return to the circular layout",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            ),
        ]

    async def handle_tool(self, name: str, arguments: dict) -> dict:
        """Route tool call to appropriate handler.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            Standardized response
        """
        handlers = {
            "network_get_snapshot": self._get_snapshot,
            "network_list_agents": self._list_agents,
            "network_get_neighbors": self._get_neighbors,
            "network_apply_layout": self._apply_layout,
            "network_pointer": self._pointer,
            "network_double_click": self._double_click,
            "network_select_agent": self._select_agent,
            "network_get_saved_layout": self._get_saved_layout,
            "network_reset_layout": self._reset_layout,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown network tool: {name}", code="UNKNOWN_TOOL")

        try:
            return await handler(arguments or {})
        except UnknownNodeError as e:
            return exception_response(e)
        except KeyError as e:
            return error_response(f"Missing required argument: {e}", code="INVALID_ARGUMENT")
        except Exception as e:
            logger.error(f"Error in {name}: {e}", exc_info=True)
            return exception_response(e)

    async def _get_snapshot(self, args: dict) -> dict:
        """Current renderable snapshot."""
        data = self.session.snapshot().model_dump(mode="json")
        if not args.get("include_activity", True):
            data.pop("activity", None)
        return success_response(data)

    async def _list_agents(self, args: dict) -> dict:
        """Catalog with live statuses."""
        statuses = self.session.statuses()
        agents = []
        for node in self.session.graph.list_nodes():
            agent = node.model_dump(mode="json")
            agent["status"] = statuses.get(node.id, node.status).value
            agents.append(agent)
        return success_response({"agents": agents, "count": len(agents)})

    async def _get_neighbors(self, args: dict) -> dict:
        """Declared connections of one agent."""
        node_id = args["node_id"]
        graph = self.session.graph
        graph.get_node(node_id)
        declared = graph.neighbors_of(node_id)
        resolved = graph.resolved_neighbors_of(node_id)
        return success_response({
            "node_id": node_id,
            "neighbors": declared,
            "resolved": resolved,
            "dangling": [target for target in declared if target not in resolved],
        })

    async def _apply_layout(self, args: dict) -> dict:
        """Switch layout mode."""
        result = self.session.apply_layout(args["mode"])
        if result is None:
            return error_response("Session is closed", code="SESSION_CLOSED")

        warnings = []
        if result.is_fallback:
            warnings.append(
                f"Layout '{result.requested_mode}' unavailable, applied {result.mode.value}"
            )
        if result.omitted:
            warnings.append(f"Not placed by {result.mode.value}: {', '.join(result.omitted)}")

        return success_response({
            "requested_mode": result.requested_mode,
            "mode": result.mode.value,
            "positions": positions_to_dict(result.positions),
            "omitted": result.omitted,
        }, warnings=warnings)

    async def _pointer(self, args: dict) -> dict:
        """Replay one pointer event."""
        event = args["event"]
        x = args.get("x")
        y = args.get("y")

        if event == "down":
            if x is None or y is None or not args.get("node_id"):
                return error_response("'down' requires node_id, x and y", code="INVALID_ARGUMENT")
            outcome = self.session.pointer_down(args["node_id"], float(x), float(y))
        elif event == "move":
            if x is None or y is None:
                return error_response("'move' requires x and y", code="INVALID_ARGUMENT")
            outcome = self.session.pointer_move(float(x), float(y))
        elif event == "up":
            outcome = self.session.pointer_up(
                float(x) if x is not None else None,
                float(y) if y is not None else None,
            )
        elif event == "leave":
            outcome = self.session.pointer_leave()
        else:
            return error_response(f"Unknown pointer event: {event}", code="INVALID_ARGUMENT")

        data = {
            "outcome": outcome.value,
            "mode": self.session.mode.value,
            "dragging_node_id": self.session.drag.dragging_node_id,
            "selected_id": self.session.selected_id,
        }
        node_id = args.get("node_id") or self.session.drag.dragging_node_id
        if node_id:
            position = self.session.drag.position_of(node_id)
            if position is not None:
                data["position"] = {"x": position.x, "y": position.y}
        return success_response(data)

    async def _double_click(self, args: dict) -> dict:
        """Navigate to an agent's route."""
        node = self.session.graph.get_node(args["node_id"])
        outcome = self.session.double_click(node.id)
        return success_response({
            "outcome": outcome.value,
            "route": node.route if outcome is PointerOutcome.NAVIGATED else None,
        })

    async def _select_agent(self, args: dict) -> dict:
        """Select an agent, or clear the selection."""
        node_id = args.get("node_id")
        if not node_id:
            self.session.clear_selection()
            return success_response({"selected": None})
        details = self.session.select_node(node_id)
        return success_response({"selected": details.model_dump(mode="json")})

    async def _get_saved_layout(self, args: dict) -> dict:
        """Persisted mode and positions."""
        persistence = self.session.persistence
        mode = persistence.load_mode()
        positions = persistence.load_positions()
        return success_response({
            "mode": mode.value if mode else None,
            "positions": positions_to_dict(positions) if positions is not None else None,
            "complete": positions is not None and all(
                node_id in positions for node_id in self.session.graph.node_ids()
            ),
        })

    async def _reset_layout(self, args: dict) -> dict:
        """Clear saved layout and return to circular."""
        result = self.session.reset_layout()
        if result is None:
            return error_response("Session is closed", code="SESSION_CLOSED")
        return success_response({"mode": result.mode.value})
