# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Hellō Admin tools and resources registered by default."""

from __future__ import annotations

from .applications import create_application, create_secret, read_application, update_application
from .logo import supported_logo_formats, update_logo
from .publishers import create_publisher, get_profile, read_publisher, update_publisher
from ..resource import ResourceSpec


ADMIN_TOOLS = (
    get_profile,
    create_publisher,
    update_publisher,
    read_publisher,
    read_application,
    create_application,
    update_application,
    update_logo,
    create_secret,
)

DOCUMENTATION_RESOURCES = (
    ResourceSpec(
        uri="https://www.hello.dev/docs/",
        name="Hellō Documentation",
        description="Complete documentation for integrating Hellō authentication into your application",
        mime_type="text/html",
    ),
    ResourceSpec(
        uri="https://www.hello.dev/docs/quickstarts/",
        name="Hellō Quickstarts",
        description="Quick setup guides for Express, Fastify, Next.js, WordPress and other frameworks",
        mime_type="text/html",
    ),
    ResourceSpec(
        uri="https://www.hello.dev/docs/hello-buttons/",
        name="Hellō Buttons",
        description="How to implement and customize Hellō login buttons in your application",
        mime_type="text/html",
    ),
    ResourceSpec(
        uri="https://www.hello.dev/docs/hello-scopes/",
        name="Hellō Scopes",
        description="Available scopes and claims you can request from users",
        mime_type="text/html",
    ),
    ResourceSpec(
        uri="https://www.hello.dev/docs/apis/wallet/",
        name="Hellō Wallet API",
        description="Wallet API reference including authorization parameters and response handling",
        mime_type="text/html",
    ),
)

ADMIN_RESOURCES = (*DOCUMENTATION_RESOURCES, supported_logo_formats)


__all__ = ["ADMIN_RESOURCES", "ADMIN_TOOLS", "DOCUMENTATION_RESOURCES"]
