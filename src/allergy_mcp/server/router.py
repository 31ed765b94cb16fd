"""
Method Router — Dispatch MCP methods to handlers

Routes:
  initialize       -> server capabilities handshake
  initialized      -> notification (no response)
  tools/list       -> tool catalog, straight from the schema registry
  tools/call       -> Dispatcher
  ping             -> pong
"""

from typing import Any, Dict, Optional

from allergy_mcp.config import Config
from allergy_mcp.server.dispatcher import Dispatcher
from allergy_mcp.server.logger import get_logger
from allergy_mcp.server.protocol import (
    initialize_result,
    tools_list_result,
    ProtocolError,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
)

log = get_logger("router")


class Router:
    """MCP method dispatcher."""

    def __init__(self, dispatcher: Dispatcher):
        self._dispatcher = dispatcher
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def route(self, msg_type: str, msg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Route a validated message to the appropriate handler.
        Returns the result payload or None for notifications.
        """
        method = msg.get("method", "")
        params = msg.get("params") or {}

        if msg_type == "notification":
            if method in ("initialized", "notifications/initialized"):
                self._initialized = True
            elif method != "notifications/cancelled":
                log.debug(f"Ignoring notification: {method}")
            return None

        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "Params must be an object")

        if method == "initialize":
            return self._handle_initialize(params)

        if method == "ping":
            return {}

        if method == "tools/list":
            return self._handle_tools_list()

        if method == "tools/call":
            return await self._handle_tools_call(params)

        raise ProtocolError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    def _handle_initialize(self, params: Dict) -> Dict[str, Any]:
        log.info(
            f"Client initialize: {params.get('clientInfo', {}).get('name', '?')} "
            f"protocol={params.get('protocolVersion', '?')}"
        )
        return initialize_result(
            server_name=Config.SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            protocol_version=Config.PROTOCOL_VERSION,
        )

    def _handle_tools_list(self) -> Dict[str, Any]:
        return tools_list_result(self._dispatcher.registry.to_wire())

    async def _handle_tools_call(self, params: Dict) -> Dict[str, Any]:
        name = params.get("name", "")
        args = params.get("arguments")

        if not name or not isinstance(name, str):
            raise ProtocolError(INVALID_PARAMS, "Missing tool name")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ProtocolError(INVALID_PARAMS, "Tool arguments must be an object")

        response = await self._dispatcher.dispatch(name, args)
        return response.to_wire()

    @property
    def tool_count(self) -> int:
        return len(self._dispatcher.registry)
