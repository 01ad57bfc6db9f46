# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tagged failure types shared by the auth lifecycle, API client and router.

Every failure that can reach a transport is an instance of
:class:`HelloMCPError`.  The router classifies failures by *type* only: the
JSON-RPC ``code``, the HTTP status and the optional ``WWW-Authenticate``
challenge all travel on the exception class, so no caller ever needs to inspect
message text.

Code table::

    -32700  ParseError               HTTP 400
    -32600  ProtocolError            HTTP 400
    -32601  DispatchError            HTTP 200
    -32602  ParamsValidationError    HTTP 200
    -32001  AuthenticationError      HTTP 401 + challenge
    -32003  ScopeError               HTTP 403 + challenge
    -32603  InternalError            HTTP 200
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR, ErrorData


AUTHENTICATION_REQUIRED = -32001
INSUFFICIENT_SCOPE = -32003


@dataclass(slots=True)
class Challenge:
    """Structured ``WWW-Authenticate: Bearer`` challenge."""

    realm: str | None = None
    error: str | None = None
    error_description: str | None = None
    scope: str | None = None
    resource_metadata: str | None = None

    def render(self) -> str:
        params = [
            (key, value)
            for key, value in (
                ("realm", self.realm),
                ("error", self.error),
                ("error_description", self.error_description),
                ("scope", self.scope),
                ("resource_metadata", self.resource_metadata),
            )
            if value is not None
        ]
        if not params:
            return "Bearer"
        return "Bearer " + ", ".join(f'{key}="{value}"' for key, value in params)


class HelloMCPError(Exception):
    """Base class for failures that map onto a JSON-RPC error object."""

    code: ClassVar[int] = INTERNAL_ERROR
    http_status: ClassVar[int] = 200

    def __init__(self, message: str, *, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def challenge_header(self) -> str | None:
        return None

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message, data=self.data)


class ParseError(HelloMCPError):
    code = PARSE_ERROR
    http_status = 400


class ProtocolError(HelloMCPError):
    """Envelope rejected before dispatch (wrong ``jsonrpc`` version, bad shape)."""

    code = INVALID_REQUEST
    http_status = 400


class DispatchError(HelloMCPError):
    """No handler for the requested method."""

    code = METHOD_NOT_FOUND


class UnknownToolError(DispatchError):
    """``tools/call`` named a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}", data={"tool": name})
        self.tool_name = name


class ParamsValidationError(HelloMCPError):
    code = INVALID_PARAMS


class InternalError(HelloMCPError):
    code = INTERNAL_ERROR


class UpstreamError(InternalError):
    """The Admin API answered with a status the tools cannot turn into a result."""

    def __init__(self, message: str, *, status: int | None = None, body: Any = None) -> None:
        data: dict[str, Any] = {}
        if status is not None:
            data["status"] = status
        if body is not None:
            data["body"] = body
        super().__init__(message, data=data or None)
        self.status = status
        self.body = body


class AuthenticationError(HelloMCPError):
    """Credentials are missing, expired or were rejected upstream.

    ``challenge`` is either a structured :class:`Challenge` or the verbatim
    header string received from the Admin API.  When absent, transports fall
    back to the server's default challenge.
    """

    code = AUTHENTICATION_REQUIRED
    http_status = 401

    def __init__(
        self,
        message: str = "Authentication required",
        *,
        challenge: Challenge | str | None = None,
        upstream_status: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message, data=data)
        self.challenge = challenge
        self.upstream_status = upstream_status

    def challenge_header(self) -> str | None:
        if self.challenge is None:
            return None
        if isinstance(self.challenge, Challenge):
            return self.challenge.render()
        return self.challenge


class ScopeError(AuthenticationError):
    """The token is valid but lacks the scope required for the call."""

    code = INSUFFICIENT_SCOPE
    http_status = 403

    def __init__(self, message: str = "Insufficient scope", *, scope: str = "mcp", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.scope = scope


# ----------------------------------------------------------------------------
# Interactive authorization failures
# ----------------------------------------------------------------------------


class AuthenticationFailed(AuthenticationError):
    """An interactive authorization attempt did not produce a token."""


class AuthorizationDenied(AuthenticationFailed):
    """The identity provider redirected back with an ``error`` parameter."""

    def __init__(self, error: str, description: str | None = None) -> None:
        message = f"OAuth error: {error}"
        if description:
            message = f"{message} ({description})"
        super().__init__(message, data={"error": error, "error_description": description})
        self.error = error
        self.description = description


class StateMismatchError(AuthenticationFailed):
    def __init__(self) -> None:
        super().__init__("Invalid state parameter")


class MissingCodeError(AuthenticationFailed):
    def __init__(self) -> None:
        super().__init__("No authorization code received")


class CallbackBindError(AuthenticationFailed):
    """The loopback listener could not bind its fixed port."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(f"Unable to listen for the authorization callback on {host}:{port}: {reason}")
        self.host = host
        self.port = port


class AuthorizationTimeout(AuthenticationFailed):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Authorization not completed within {timeout:g} seconds")
        self.timeout = timeout


class TokenExchangeFailed(AuthenticationFailed):
    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        data: dict[str, Any] = {}
        if status is not None:
            data["status"] = status
        if body is not None:
            data["body"] = body
        super().__init__(message, upstream_status=status, data=data or None)
        self.status = status
        self.body = body


__all__ = [
    "AUTHENTICATION_REQUIRED",
    "INSUFFICIENT_SCOPE",
    "AuthenticationError",
    "AuthenticationFailed",
    "AuthorizationDenied",
    "AuthorizationTimeout",
    "CallbackBindError",
    "Challenge",
    "DispatchError",
    "HelloMCPError",
    "InternalError",
    "MissingCodeError",
    "ParamsValidationError",
    "ParseError",
    "ProtocolError",
    "ScopeError",
    "StateMismatchError",
    "TokenExchangeFailed",
    "UnknownToolError",
    "UpstreamError",
]
