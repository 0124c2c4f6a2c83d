# Athena Records
# File: tools/__init__.py
# Version: v1

"""Helpers for registering MCP tools."""

from __future__ import annotations

from typing import Any

from . import tasks


def register_all_tools(mcp: Any) -> None:
    """Register all MCP tools exposed by this server."""
    tasks.register_tools(mcp)
