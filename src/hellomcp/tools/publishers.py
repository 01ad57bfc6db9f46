# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Profile and publisher tools."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from ..context import get_context
from ..tool import tool


PublisherId = Annotated[str, Field(min_length=1, description="ID of the publisher")]


@tool("hello_get_profile", annotations={"readOnlyHint": True})
async def get_profile(
    publisher_id: Annotated[str | None, Field(description="Optional specific publisher ID")] = None,
) -> Any:
    """Get your Hellō developer profile and publishers."""
    path = "/api/v1/profile"
    if publisher_id:
        path = f"{path}/{publisher_id}"
    return await get_context().api.request_for_tool("GET", path)


@tool("hello_create_publisher")
async def create_publisher(
    name: Annotated[
        str | None, Field(description="Name of the publisher/team (defaults to \"[Your Name]'s Team\")")
    ] = None,
) -> Any:
    """Create a new Hellō publisher (team/organization)."""
    body = {"name": name} if name else {}
    return await get_context().api.request_for_tool("POST", "/api/v1/publishers", body)


@tool("hello_update_publisher")
async def update_publisher(
    publisher_id: PublisherId,
    name: Annotated[str, Field(min_length=1, description="New name for the publisher")],
) -> Any:
    """Update/rename a Hellō publisher."""
    return await get_context().api.request_for_tool("PUT", f"/api/v1/publishers/{publisher_id}", {"name": name})


@tool("hello_read_publisher", annotations={"readOnlyHint": True})
async def read_publisher(publisher_id: PublisherId) -> Any:
    """Read detailed information about a specific Hellō publisher including all applications."""
    return await get_context().api.request_for_tool("GET", f"/api/v1/publishers/{publisher_id}")


__all__ = ["create_publisher", "get_profile", "read_publisher", "update_publisher"]
