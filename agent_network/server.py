"""MCP server exposing the agent network visualization engine."""

import asyncio
import json
import logging
from typing import Optional

from mcp import Tool
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import TextContent

from . import __version__
from .core.view_model import AgentNetworkSession, create_session
from .tools.network_tools import NetworkTools

logger = logging.getLogger(__name__)


class AgentNetworkMCPServer:
    """MCP Server for the agent network visualization."""

    def __init__(self, session: Optional[AgentNetworkSession] = None):
        """Initialize the MCP server around one session.

        Args:
            session: Session to expose (built from settings on first run if
                omitted, so its timers bind to the server's event loop)
        """
        self._session = session
        self._network_tools: Optional[NetworkTools] = None

        # Create MCP server instance
        self.server = Server("agent-network")

        # Register handlers
        self._register_handlers()

    @property
    def session(self) -> AgentNetworkSession:
        if self._session is None:
            self._session = create_session()
        return self._session

    @property
    def network_tools(self) -> NetworkTools:
        if self._network_tools is None:
            self._network_tools = NetworkTools(self.session)
        return self._network_tools

    def _register_handlers(self):
        """Register all MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List all available tools."""
            return self.network_tools.get_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[TextContent]:
            """Route tool calls to the network tools."""
            result = await self.call_tool(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

    async def call_tool(self, name: str, arguments: Optional[dict]) -> dict:
        """Dispatch one tool call and return its response envelope."""
        return await self.network_tools.handle_tool(name, arguments or {})

    async def run(self):
        """Run the MCP server with the flow animation live while connected."""
        from mcp.server.stdio import stdio_server

        session = self.session
        session.initialize()
        session.start()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name="agent-network",
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={}
                        )
                    )
                )
        finally:
            session.close()


def main():
    """Main entry point for the MCP server."""
    logging.basicConfig(level=logging.INFO)
    server = AgentNetworkMCPServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
