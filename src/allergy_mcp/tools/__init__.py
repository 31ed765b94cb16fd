"""
Allergy MCP Tools

Modules:
  allergy_tools  — the 4 allergy lookup / analysis tools
  analysis       — pluggable symptom analysis and treatment plans
"""

from typing import Any

from allergy_mcp.server.dispatcher import Dispatcher
from allergy_mcp.tools import allergy_tools

ALL_TOOLS = [d.to_dict() for d in allergy_tools.toolset.definitions]


def build_dispatcher(store: Any) -> Dispatcher:
    """Bind every tool to ``store`` and return a ready Dispatcher."""
    registry, handlers = allergy_tools.toolset.build(store)
    return Dispatcher(registry, handlers)
