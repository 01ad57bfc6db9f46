# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Utility helpers for hellomcp."""

from __future__ import annotations

from .coro import maybe_await_with_args
from .logger import get_logger, setup_logger


__all__ = [
    "get_logger",
    "maybe_await_with_args",
    "setup_logger",
]
