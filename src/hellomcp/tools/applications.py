# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Application and client-secret tools.

Create and update run redirect URIs through :func:`hellomcp.redirects.reconcile`
before anything is sent upstream.  The tool result carries the Admin API
payload under ``application`` and one entry per rejected URI under
``warnings``.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from ..client.api import is_upstream_marker
from ..context import get_context
from ..redirects import Environment, reconcile
from ..tool import tool
from .publishers import PublisherId


ApplicationId = Annotated[str, Field(min_length=1, description="ID of the application")]


def application_path(publisher_id: str, application_id: str) -> str:
    return f"/api/v1/publishers/{publisher_id}/applications/{application_id}"


def _dev_settings(current: dict[str, Any], localhost: bool | None, local_ip: bool | None, wildcard: bool | None) -> dict[str, Any]:
    return {
        "localhost": localhost if localhost is not None else current.get("localhost", True),
        "127.0.0.1": local_ip if local_ip is not None else current.get("127.0.0.1", True),
        "wildcard_domain": wildcard if wildcard is not None else current.get("wildcard_domain", False),
    }


@tool("hello_read_application", annotations={"readOnlyHint": True})
async def read_application(publisher_id: PublisherId, application_id: ApplicationId) -> Any:
    """Read detailed information about a specific Hellō application including redirect URIs."""
    return await get_context().api.request_for_tool("GET", application_path(publisher_id, application_id))


@tool("hello_create_application")
async def create_application(
    publisher_id: PublisherId,
    name: Annotated[str | None, Field(description="Application name")] = None,
    dev_redirect_uris: Annotated[list[str] | None, Field(description="Development redirect URIs")] = None,
    prod_redirect_uris: Annotated[list[str] | None, Field(description="Production redirect URIs (https or custom scheme)")] = None,
    device_code: Annotated[bool, Field(description="Support device code flow")] = False,
    image_uri: Annotated[str | None, Field(description="Application logo URI")] = None,
    tos_uri: Annotated[str | None, Field(description="Terms of Service URI")] = None,
    pp_uri: Annotated[str | None, Field(description="Privacy Policy URI")] = None,
    localhost: Annotated[bool, Field(description="Allow localhost in development")] = True,
    local_ip: Annotated[bool, Field(description="Allow 127.0.0.1 in development")] = True,
    wildcard_domain: Annotated[bool, Field(description="Allow wildcard domains in development")] = False,
) -> Any:
    """Create a new Hellō application under a publisher."""
    dev = reconcile(None, dev_redirect_uris, Environment.DEVELOPMENT)
    prod = reconcile(None, prod_redirect_uris, Environment.PRODUCTION)

    body: dict[str, Any] = {
        "name": name,
        "tos_uri": tos_uri,
        "pp_uri": pp_uri,
        "image_uri": image_uri,
        "web": {
            "dev": {
                **_dev_settings({}, localhost, local_ip, wildcard_domain),
                "redirect_uris": dev.accepted,
            },
            "prod": {"redirect_uris": prod.accepted},
        },
        "device_code": device_code,
        "createdBy": "mcp",
    }
    if name is None:
        del body["name"]

    payload = await get_context().api.request_for_tool("POST", f"/api/v1/publishers/{publisher_id}/applications", body)
    if is_upstream_marker(payload):
        return payload
    return {"application": payload, "warnings": dev.warnings + prod.warnings}


@tool("hello_update_application")
async def update_application(
    publisher_id: PublisherId,
    application_id: ApplicationId,
    name: Annotated[str | None, Field(description="Application name")] = None,
    dev_redirect_uris: Annotated[list[str] | None, Field(description="Development redirect URIs; replaces the current set")] = None,
    prod_redirect_uris: Annotated[list[str] | None, Field(description="Production redirect URIs; merged into the current set")] = None,
    device_code: Annotated[bool | None, Field(description="Support device code flow")] = None,
    image_uri: Annotated[str | None, Field(description="Application logo URI")] = None,
    dark_image_uri: Annotated[str | None, Field(description="Dark theme logo URI")] = None,
    tos_uri: Annotated[str | None, Field(description="Terms of Service URI")] = None,
    pp_uri: Annotated[str | None, Field(description="Privacy Policy URI")] = None,
    localhost: Annotated[bool | None, Field(description="Allow localhost in development")] = None,
    local_ip: Annotated[bool | None, Field(description="Allow 127.0.0.1 in development")] = None,
    wildcard_domain: Annotated[bool | None, Field(description="Allow wildcard domains in development")] = None,
) -> Any:
    """Update configuration for an existing Hellō application.

    Production redirect URIs are merged with the stored ones; development
    redirect URIs replace them.
    """
    api = get_context().api
    path = application_path(publisher_id, application_id)

    current = await api.request_for_tool("GET", path)
    if is_upstream_marker(current):
        return current
    current = dict(current or {})

    update = dict(current)
    for key, value in (
        ("name", name),
        ("tos_uri", tos_uri),
        ("pp_uri", pp_uri),
        ("image_uri", image_uri),
        ("dark_image_uri", dark_image_uri),
        ("device_code", device_code),
    ):
        if value is not None:
            update[key] = value

    warnings: list[str] = []
    web_changed = any(
        value is not None for value in (dev_redirect_uris, prod_redirect_uris, localhost, local_ip, wildcard_domain)
    )
    if web_changed:
        web = current.get("web") or {}
        current_dev = web.get("dev") or {}
        current_prod = web.get("prod") or {}

        dev_uris = list(current_dev.get("redirect_uris") or [])
        if dev_redirect_uris is not None:
            dev = reconcile(dev_uris, dev_redirect_uris, Environment.DEVELOPMENT)
            dev_uris = dev.accepted
            warnings.extend(dev.warnings)

        prod_uris = list(current_prod.get("redirect_uris") or [])
        if prod_redirect_uris is not None:
            prod = reconcile(prod_uris, prod_redirect_uris, Environment.PRODUCTION)
            prod_uris = prod.accepted
            warnings.extend(prod.warnings)

        update["web"] = {
            **web,
            "dev": {
                **current_dev,
                **_dev_settings(current_dev, localhost, local_ip, wildcard_domain),
                "redirect_uris": dev_uris,
            },
            "prod": {**current_prod, "redirect_uris": prod_uris},
        }

    payload = await api.request_for_tool("PUT", path, update)
    if is_upstream_marker(payload):
        return payload
    return {"application": payload, "warnings": warnings}


@tool("hello_create_secret")
async def create_secret(
    publisher_id: PublisherId,
    application_id: ApplicationId,
    hash: Annotated[str, Field(min_length=1, description="Hash of the secret")],  # noqa: A002
    salt: Annotated[str, Field(min_length=1, description="Salt used for hashing")],
) -> Any:
    """Create a new client secret for a Hellō application (for server-side authentication)."""
    path = f"{application_path(publisher_id, application_id)}/secrets"
    return await get_context().api.request_for_tool("POST", path, {"hash": hash, "salt": salt})


__all__ = ["application_path", "create_application", "create_secret", "read_application", "update_application"]
