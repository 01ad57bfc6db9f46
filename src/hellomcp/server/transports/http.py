# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""HTTP transport: Starlette application served by uvicorn.

Routes::

    POST /, POST /mcp       JSON-RPC envelope in, JSON-RPC body out
    GET  /, GET  /mcp       302 to the documentation site
    GET  /health            liveness probe
    GET  /version           package name and version
    GET  /.well-known/...   OAuth discovery metadata

A bearer token in the ``Authorization`` header seeds a fresh session for that
request only; without one the server's shared session (``HELLO_ACCESS_TOKEN``)
is used.  Status codes and ``WWW-Authenticate`` come from the router.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import TYPE_CHECKING, Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route
from uvicorn import Config, Server

from .base import BaseTransport
from ...config import DOCS_URL, SERVER_NAME, SERVER_VERSION
from ...errors import ParseError
from ...utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core import MCPServer


class HTTPTransport(BaseTransport):
    """Serve an :class:`hellomcp.server.MCPServer` over plain HTTP POST."""

    TRANSPORT = ("http", "HTTP", "streamable-http", "shttp")

    DEFAULT_LOG_LEVEL = "info"
    ENDPOINT_PATHS: tuple[str, ...] = ("/", "/mcp")

    def __init__(self, server: MCPServer, *, allow_origins: list[str] | None = None) -> None:
        super().__init__(server)
        self._allow_origins = allow_origins or ["*"]
        self._logger = get_logger("hellomcp.transport.http")

    # ------------------------------------------------------------------
    # ASGI application
    # ------------------------------------------------------------------

    def build_app(self) -> Starlette:
        routes: list[Route] = []
        for path in self.ENDPOINT_PATHS:
            routes.append(Route(path, self._handle_post, methods=["POST"]))
            routes.append(Route(path, self._handle_get, methods=["GET"]))
        routes.append(Route("/health", self._health, methods=["GET"]))
        routes.append(Route("/version", self._version, methods=["GET"]))
        routes.extend(self.server.authorization.starlette_routes())

        middleware = [
            Middleware(
                CORSMiddleware,
                allow_origins=self._allow_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["Authorization", "Content-Type", "Mcp-Protocol-Version"],
                expose_headers=["WWW-Authenticate"],
            )
        ]
        return Starlette(routes=routes, middleware=middleware)

    async def _handle_post(self, request: Request) -> Response:
        try:
            envelope: Any = json.loads(await request.body())
        except ValueError:
            error = ParseError("Parse error")
            return JSONResponse(
                {"jsonrpc": "2.0", "id": None, "error": error.to_error_data().model_dump(exclude_none=True)},
                status_code=error.http_status,
            )

        token = self.server.authorization.extract_bearer(request.headers.get("authorization"))
        api = self.server.request_api(token)
        routed = await self.server.handle(envelope, api=api, transport=self.transport_name)

        if routed.body is None:
            return Response(status_code=routed.http_status, headers=routed.headers)
        return JSONResponse(routed.body, status_code=routed.http_status, headers=routed.headers)

    async def _handle_get(self, _request: Request) -> Response:
        return RedirectResponse(DOCS_URL, status_code=302)

    async def _health(self, _request: Request) -> Response:
        return JSONResponse({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    async def _version(self, _request: Request) -> Response:
        return JSONResponse(
            {"name": SERVER_NAME, "version": SERVER_VERSION, "description": "Hellō Admin MCP server"}
        )

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        config = self.server.config
        host = host or config.host
        port = port or config.port
        log_level = log_level or self.DEFAULT_LOG_LEVEL

        uvicorn_config = Config(app=self.build_app(), host=host, port=port, log_level=log_level, **uvicorn_options)
        self._logger.info(
            "HTTP endpoints at http://%s:%s/ and /mcp",
            host,
            port,
            extra={"event": "transport.http.start", "host": host, "port": port},
        )
        await Server(uvicorn_config).serve()


__all__ = ["HTTPTransport"]
