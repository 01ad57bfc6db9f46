# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Public server-side surface for hellomcp.

The heavy lifting lives in :mod:`hellomcp.server.core` and
:mod:`hellomcp.server.router`; this module re-exports what host applications
are expected to import.
"""

from __future__ import annotations

from .authorization import AuthorizationConfig, AuthorizationManager
from .core import MCPServer
from .router import RoutedResponse, Router


__all__ = [
    "AuthorizationConfig",
    "AuthorizationManager",
    "MCPServer",
    "RoutedResponse",
    "Router",
]
