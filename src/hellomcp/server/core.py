# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Composable Hellō admin MCP server."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any
import webbrowser

import anyio
import httpx

from .authorization import AuthorizationConfig, AuthorizationManager
from .router import RoutedResponse, Router
from .services import ResourcesService, ToolsService
from .transports import BaseTransport, HTTPTransport, StdioTransport, TransportFactory
from .. import types
from ..auth.flow import PKCEAuthorizationFlow
from ..auth.loopback import BrowserOpener
from ..auth.session import AuthLifecycleManager, AuthSession
from ..client.api import AdminAPIClient
from ..config import SERVER_NAME, SERVER_VERSION, HelloConfig
from ..resource import ResourceSpec
from ..tool import ToolSpec
from ..tools import ADMIN_RESOURCES, ADMIN_TOOLS
from ..utils import get_logger


INSTRUCTIONS = (
    "Manage Hellō publishers and applications through the Hellō Admin API. "
    "Production redirect URIs must use https or a custom scheme."
)


class MCPServer:
    """Hellō admin server surface shared by the stdio and HTTP transports.

    The server owns the tool and resource registries, the router, the shared
    token session and one pooled ``httpx.AsyncClient``.  Sessions are plain
    objects: the shared one is seeded from ``HELLO_ACCESS_TOKEN`` and HTTP
    requests carrying their own bearer get a fresh one via :meth:`request_api`.
    """

    def __init__(
        self,
        config: HelloConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        open_browser: BrowserOpener | None = webbrowser.open,
        transport: str | None = None,
        instructions: str | None = INSTRUCTIONS,
        register_defaults: bool = True,
    ) -> None:
        self.config = config or HelloConfig.from_env()
        self.name = SERVER_NAME
        self._logger = get_logger("hellomcp.server")
        self._default_transport = (transport or "stdio").lower()
        self._open_browser = open_browser

        self._http_client = http_client
        self._owns_http_client = http_client is None

        self.tools = ToolsService(logger=self._logger)
        self.resources = ResourcesService(logger=self._logger)
        if register_defaults:
            for target in ADMIN_TOOLS:
                self.tools.register(target)
            for spec in ADMIN_RESOURCES:
                self.resources.register(spec)

        self.authorization = AuthorizationManager(AuthorizationConfig.from_hello_config(self.config))
        self.router = Router(
            tools=self.tools,
            resources=self.resources,
            authorization=self.authorization,
            server_info=types.Implementation(name=SERVER_NAME, version=SERVER_VERSION),
            instructions=instructions,
            logger=get_logger("hellomcp.router"),
        )
        self.lifecycle = AuthLifecycleManager(AuthSession(self.config.access_token))

        self._transport_factories: dict[str, TransportFactory] = {}
        self.register_transport("stdio", lambda server: StdioTransport(server))
        self.register_transport(
            "http", lambda server: HTTPTransport(server), aliases=("streamable-http", "streamable_http", "shttp")
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def tool_names(self) -> list[str]:
        return self.tools.tool_names

    def register_tool(self, target: ToolSpec | Callable[..., Any]) -> ToolSpec:
        return self.tools.register(target)

    def register_resource(self, target: ResourceSpec | Callable[[], Any]) -> ResourceSpec:
        return self.resources.register(target)

    # ------------------------------------------------------------------
    # Admin API access
    # ------------------------------------------------------------------

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.request_timeout)
        return self._http_client

    def api_client(self, lifecycle: AuthLifecycleManager | None = None) -> AdminAPIClient:
        return AdminAPIClient(
            lifecycle or self.lifecycle,
            base_url=self.config.admin_base_url,
            http_client=self.http_client,
        )

    def request_api(self, token: str | None) -> AdminAPIClient:
        """Return a client for one HTTP request.

        A bearer from the request gets its own session so concurrent callers
        never see each other's tokens.
        """
        if token is None:
            return self.api_client()
        return self.api_client(AuthLifecycleManager(AuthSession(token)))

    def enable_browser_login(self) -> PKCEAuthorizationFlow:
        """Attach the interactive PKCE flow to the shared session."""
        flow = PKCEAuthorizationFlow.from_config(self.config, self.http_client, open_browser=self._open_browser)
        self.lifecycle.attach_flow(flow)
        return flow

    async def handle(
        self,
        envelope: Any,
        *,
        api: AdminAPIClient | None = None,
        transport: str = "unknown",
    ) -> RoutedResponse:
        return await self.router.handle(envelope, api=api or self.api_client(), transport=transport)

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------------
    # Transport registry
    # ------------------------------------------------------------------

    def register_transport(self, name: str, factory: TransportFactory, *, aliases: Iterable[str] | None = None) -> None:
        canonical = name.lower()
        self._transport_factories[canonical] = factory
        for alias in aliases or ():
            self._transport_factories[alias.lower()] = factory

    def _transport_for_name(self, name: str) -> BaseTransport:
        factory = self._transport_factories.get(name.lower())
        if factory is None:
            raise ValueError(f"Unsupported transport '{name}'.")
        transport = factory(self)
        if not isinstance(transport, BaseTransport):  # pragma: no cover - defensive
            raise TypeError("Transport factory must return a BaseTransport instance")
        return transport

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    async def serve(self, *, transport: str | None = None, **transport_kwargs: Any) -> None:
        selected = (transport or self._default_transport).lower()
        transport_instance = self._transport_for_name(selected)
        if isinstance(transport_instance, StdioTransport):
            self.enable_browser_login()
        self._logger.info(
            "Serving %s via %s",
            self.name,
            transport_instance.transport_display_name,
            extra={"event": "server.serve", "transport": transport_instance.transport_name},
        )
        try:
            await transport_instance.run(**transport_kwargs)
        finally:
            with anyio.CancelScope(shield=True):
                await self.aclose()

    async def serve_stdio(self, **kwargs: Any) -> None:
        await self.serve(transport="stdio", **kwargs)

    async def serve_http(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        await self.serve(transport="http", host=host, port=port, log_level=log_level, **uvicorn_options)


__all__ = ["INSTRUCTIONS", "MCPServer"]
