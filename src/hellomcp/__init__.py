# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""MCP server exposing the Hellō Admin API as tools."""

from __future__ import annotations

from . import types
from .config import HelloConfig
from .context import Context, get_context
from .resource import resource
from .server import MCPServer
from .tool import tool


__all__ = [
    "Context",
    "HelloConfig",
    "MCPServer",
    "get_context",
    "resource",
    "tool",
    "types",
]
