# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Single import site for the MCP protocol models.

The reference SDK ships generated Pydantic models and JSON-RPC error constants
under ``mcp.types``.  Handlers, the router and the transports import them from
here so that ``hellomcp`` code never reaches into the SDK layout directly.
"""

from __future__ import annotations

from mcp import types as _types


__all__ = tuple(name for name in dir(_types) if not name.startswith("_"))

globals().update({name: getattr(_types, name) for name in __all__})
