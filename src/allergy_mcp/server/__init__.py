"""Allergy MCP Server — JSON-RPC tool dispatch over stdio."""

from allergy_mcp.server.server import AllergyMCPServer
from allergy_mcp.server.dispatcher import Dispatcher, ErrorKind, ToolResponse
from allergy_mcp.server.router import Router

__all__ = ["AllergyMCPServer", "Dispatcher", "ErrorKind", "ToolResponse", "Router"]
