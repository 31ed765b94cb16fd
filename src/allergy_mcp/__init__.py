"""Allergy MCP — schema-validated tool server for allergy records."""

__version__ = "1.0.0"
