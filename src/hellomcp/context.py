# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Request context for tool handlers.

The router activates a :class:`Context` around every ``tools/call`` so handlers
reach the Admin API client for *this* request without it being passed as an
argument (arguments are reserved for the tool's JSON Schema).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .client.api import AdminAPIClient


_CURRENT_CONTEXT: ContextVar[Context | None] = ContextVar("hellomcp_current_context", default=None)


@dataclass(slots=True, frozen=True)
class Context:
    api: AdminAPIClient
    request_id: str | int | None = None
    transport: str = "unknown"


def get_context() -> Context:
    """Return the active :class:`Context`.

    Raises:
        LookupError: If called outside of a tool invocation.

    Example::

        from hellomcp import get_context, tool

        @tool(description="Fetch the signed-in admin's profile")
        async def whoami() -> dict:
            ctx = get_context()
            return ctx.api.tool_payload(await ctx.api.call("GET", "/api/v1/profile"))
    """
    ctx = _CURRENT_CONTEXT.get()
    if ctx is None:
        raise LookupError("No active context; use get_context() from within a tool handler")
    return ctx


@contextmanager
def context_scope(context: Context) -> Iterator[Context]:
    token = _CURRENT_CONTEXT.set(context)
    try:
        yield context
    finally:
        _CURRENT_CONTEXT.reset(token)


__all__ = ["Context", "context_scope", "get_context"]
