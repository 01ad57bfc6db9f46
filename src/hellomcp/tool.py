# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool declaration utilities.

``@tool`` attaches a :class:`ToolSpec` to a handler function.  Handlers are
registered with :meth:`hellomcp.server.MCPServer.register_tool`; the
:class:`~hellomcp.server.services.tools.ToolsService` derives the input schema
from the function signature, so ``Annotated[..., Field(description=...)]``
parameters become documented JSON Schema properties.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


ToolFn = Callable[..., Any]


@dataclass(slots=True)
class ToolSpec:
    """In-memory representation of a tool definition."""

    name: str
    fn: ToolFn
    description: str = ""
    title: str | None = None
    annotations: dict[str, Any] | None = None


_TOOL_ATTR = "__hellomcp_tool__"


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    title: str | None = None,
    annotations: dict[str, Any] | None = None,
) -> Callable[[ToolFn], ToolFn]:
    """Decorator that marks a callable as an MCP tool.

    The description falls back to the first paragraph of the docstring.
    """

    def decorator(fn: ToolFn) -> ToolFn:
        doc = (fn.__doc__ or "").strip().split("\n\n", 1)[0]
        desc = (description if description is not None else " ".join(doc.split())).strip()
        spec = ToolSpec(
            name=name or fn.__name__ or "anonymous",
            fn=fn,
            description=desc,
            title=title,
            annotations=annotations,
        )
        setattr(fn, _TOOL_ATTR, spec)
        return fn

    return decorator


def extract_tool_spec(fn: ToolFn) -> ToolSpec | None:
    """Return the attached :class:`ToolSpec` for *fn*, if present."""
    spec = getattr(fn, _TOOL_ATTR, None)
    if not isinstance(spec, ToolSpec):
        return None
    return spec


__all__ = ["ToolFn", "ToolSpec", "extract_tool_spec", "tool"]
