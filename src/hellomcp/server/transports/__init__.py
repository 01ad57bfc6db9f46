# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for the Hellō admin MCP server.

Both adapters hand decoded envelopes to the same router, so they differ only
in framing.
"""

from __future__ import annotations

from .base import BaseTransport, TransportFactory
from .http import HTTPTransport
from .stdio import StdioTransport


__all__ = ["BaseTransport", "HTTPTransport", "StdioTransport", "TransportFactory"]
