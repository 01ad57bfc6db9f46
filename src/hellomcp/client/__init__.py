# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Outbound clients used by tool handlers."""

from __future__ import annotations

from .api import APIResponse, AdminAPIClient


__all__ = ["APIResponse", "AdminAPIClient"]
