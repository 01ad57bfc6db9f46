# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Capability services composed by :class:`hellomcp.server.MCPServer`."""

from __future__ import annotations

from .resources import ResourcesService
from .tools import ToolsService


__all__ = ["ResourcesService", "ToolsService"]
