# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""JSON-RPC request router shared by every transport.

:meth:`Router.handle` takes one decoded envelope and returns a
:class:`RoutedResponse`; transports only frame bytes.  Processing order:

1. ``jsonrpc`` must equal ``"2.0"``; anything else is ``-32600`` before the
   method is even looked at.
2. Envelope shape (``method`` string, ``id`` string/int, ``params`` object).
3. Dispatch against a fixed method table; unknown methods are ``-32601``.
4. Failures are mapped by exception type.  Tool results carrying the
   upstream ``_httpStatus`` marker are promoted to ``-32001`` with the
   upstream ``WWW-Authenticate`` header kept verbatim.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any

from mcp.shared.exceptions import McpError
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from pydantic import BaseModel

from .adapters import marker_challenge, upstream_marker
from .authorization import AuthorizationManager
from .services import ResourcesService, ToolsService
from .. import types
from ..client.api import UPSTREAM_STATUS_KEY
from ..context import Context, context_scope
from ..errors import (
    AuthenticationError,
    DispatchError,
    HelloMCPError,
    InternalError,
    ParamsValidationError,
    ProtocolError,
)
from ..utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..client.api import AdminAPIClient


JSONRPC_VERSION = "2.0"


@dataclass(slots=True)
class RoutedResponse:
    """What a transport should write back for one envelope.

    ``body`` is ``None`` for notifications; HTTP answers those with 202.
    """

    body: dict[str, Any] | None
    http_status: int = 200
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class _Call:
    request_id: str | int | None
    api: AdminAPIClient | None
    transport: str


_Handler = Callable[[dict[str, Any], _Call], Awaitable[Any]]


class Router:
    """Dispatches JSON-RPC envelopes to the tools and resources services."""

    def __init__(
        self,
        *,
        tools: ToolsService,
        resources: ResourcesService,
        authorization: AuthorizationManager,
        server_info: types.Implementation,
        instructions: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.tools = tools
        self.resources = resources
        self.authorization = authorization
        self.server_info = server_info
        self.instructions = instructions
        self._logger = logger or get_logger("hellomcp.router")
        self._handlers: dict[str, _Handler] = {
            "initialize": self._initialize,
            "initialized": self._initialized,
            "notifications/initialized": self._initialized,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._handlers)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def handle(
        self,
        envelope: Any,
        *,
        api: AdminAPIClient | None = None,
        transport: str = "unknown",
    ) -> RoutedResponse:
        request_id = _request_id(envelope)
        try:
            method, params = _validate_envelope(envelope)
        except ProtocolError as exc:
            return self._error_response(request_id, exc)

        is_notification = "id" not in envelope
        call = _Call(request_id=request_id, api=api, transport=transport)
        self._logger.debug(
            "dispatching %s",
            method,
            extra={"event": "router.dispatch", "method": method, "transport": transport},
        )

        handler = self._handlers.get(method)
        try:
            if handler is None:
                raise DispatchError(f"Method not found: {method}", data={"method": method})
            result = await handler(params, call)
        except HelloMCPError as exc:
            response = self._error_response(request_id, exc)
        except McpError as exc:
            response = RoutedResponse(body=_error_body(request_id, exc.error))
        except Exception as exc:
            self._logger.exception(
                "unhandled failure in %s",
                method,
                extra={"event": "router.internal_error", "method": method},
            )
            error = InternalError("Internal error", data={"message": str(exc) or type(exc).__name__})
            response = self._error_response(request_id, error)
        else:
            response = RoutedResponse(body={"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": _dump(result)})

        if is_notification:
            return RoutedResponse(body=None, http_status=202)
        return response

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    async def _initialize(self, params: dict[str, Any], _call: _Call) -> types.InitializeResult:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else types.LATEST_PROTOCOL_VERSION
        return types.InitializeResult(
            protocolVersion=version,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                resources=types.ResourcesCapability(subscribe=False, listChanged=False),
            ),
            serverInfo=self.server_info,
            instructions=self.instructions,
        )

    async def _initialized(self, _params: dict[str, Any], _call: _Call) -> dict[str, Any]:
        return {}

    async def _ping(self, _params: dict[str, Any], _call: _Call) -> dict[str, Any]:
        return {}

    async def _list_tools(self, _params: dict[str, Any], _call: _Call) -> types.ListToolsResult:
        return await self.tools.list_tools()

    async def _call_tool(self, params: dict[str, Any], call: _Call) -> types.CallToolResult:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ParamsValidationError("tools/call requires a tool name")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise ParamsValidationError("tools/call arguments must be an object")
        if call.api is None:
            raise AuthenticationError()

        with context_scope(Context(api=call.api, request_id=call.request_id, transport=call.transport)):
            result = await self.tools.call_tool(name, arguments)

        marker = upstream_marker(result)
        if marker is not None:
            self._logger.info(
                "tool %s hit upstream status %s",
                name,
                marker.get(UPSTREAM_STATUS_KEY),
                extra={"event": "router.auth_promoted", "tool": name},
            )
            raise AuthenticationError(
                challenge=marker_challenge(marker),
                upstream_status=marker.get(UPSTREAM_STATUS_KEY),
                data={"error": "invalid_request", "error_description": "Valid bearer token required"},
            )
        return result

    async def _list_resources(self, _params: dict[str, Any], _call: _Call) -> types.ListResourcesResult:
        return await self.resources.list_resources()

    async def _read_resource(self, params: dict[str, Any], _call: _Call) -> types.ReadResourceResult:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise ParamsValidationError("resources/read requires a uri")
        return await self.resources.read(uri)

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    def _error_response(self, request_id: str | int | None, error: HelloMCPError) -> RoutedResponse:
        headers: dict[str, str] = {}
        challenge = self.authorization.challenge_for(error)
        if challenge is not None:
            headers["WWW-Authenticate"] = challenge
        self._logger.debug(
            "request failed with %s",
            error.code,
            extra={"event": "router.error", "code": error.code, "error_type": type(error).__name__},
        )
        return RoutedResponse(
            body=_error_body(request_id, error.to_error_data()),
            http_status=error.http_status,
            headers=headers,
        )


def _request_id(envelope: Any) -> str | int | None:
    if not isinstance(envelope, Mapping):
        return None
    value = envelope.get("id")
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value
    return None


def _validate_envelope(envelope: Any) -> tuple[str, dict[str, Any]]:
    if not isinstance(envelope, Mapping):
        raise ProtocolError("Invalid Request - expected a JSON object")
    if envelope.get("jsonrpc") != JSONRPC_VERSION:
        raise ProtocolError('Invalid Request - jsonrpc must be "2.0"')

    method = envelope.get("method")
    if not isinstance(method, str) or not method:
        raise ProtocolError("Invalid Request - method must be a non-empty string")
    if "id" in envelope:
        request_id = envelope["id"]
        if request_id is not None and (isinstance(request_id, bool) or not isinstance(request_id, (str, int))):
            raise ProtocolError("Invalid Request - id must be a string, integer or null")
    params = envelope.get("params")
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise ProtocolError("Invalid Request - params must be an object")
    return method, dict(params)


def _error_body(request_id: str | int | None, error: types.ErrorData) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error.model_dump(mode="json", exclude_none=True),
    }


def _dump(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return result


__all__ = ["JSONRPC_VERSION", "RoutedResponse", "Router"]
