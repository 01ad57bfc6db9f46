# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""OAuth discovery metadata and bearer challenges for the HTTP transport.

Key pieces:

* :class:`AuthorizationConfig` – URLs and scopes advertised to clients.
* :class:`AuthorizationManager` – serves the protected-resource and
  authorization-server metadata documents, parses ``Authorization`` headers
  and renders the ``WWW-Authenticate`` challenge attached to 401/403 replies.

Inbound tokens are not validated here; the Admin API is the authority and its
401 is relayed to the client with its challenge intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..config import DEFAULT_REALM, HelloConfig
from ..errors import AuthenticationError, Challenge, HelloMCPError
from ..utils import get_logger


_BEARER_RE = re.compile(r"^bearer\s+(.+)$", re.IGNORECASE)


@dataclass(slots=True)
class AuthorizationConfig:
    """Discovery settings for the MCP protected resource."""

    resource: str
    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    registration_endpoint: str
    jwks_uri: str
    resource_metadata_url: str
    authorization_servers: list[str] = field(default_factory=list)
    scopes_supported: list[str] = field(default_factory=lambda: ["mcp"])
    realm: str = DEFAULT_REALM
    protected_resource_path: str = "/.well-known/oauth-protected-resource"
    authorization_server_path: str = "/.well-known/oauth-authorization-server"
    cache_ttl: int = 3600

    @classmethod
    def from_hello_config(cls, config: HelloConfig) -> AuthorizationConfig:
        return cls(
            resource=f"{config.mcp_base_url}/",
            issuer=config.mcp_base_url,
            authorization_endpoint=config.authorization_endpoint,
            token_endpoint=config.token_endpoint,
            registration_endpoint=config.registration_endpoint,
            jwks_uri=config.jwks_uri,
            resource_metadata_url=config.resource_metadata_url,
            authorization_servers=[config.mcp_base_url],
            scopes_supported=list(config.scopes),
        )


class AuthorizationManager:
    """Coordinates discovery metadata and challenge rendering."""

    def __init__(self, config: AuthorizationConfig) -> None:
        self.config = config
        self._logger = get_logger("hellomcp.authorization")

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    def default_challenge(self) -> Challenge:
        return Challenge(
            realm=self.config.realm,
            error="invalid_request",
            error_description="Valid bearer token required",
            scope=" ".join(self.config.scopes_supported),
            resource_metadata=self.config.resource_metadata_url,
        )

    def challenge_for(self, error: HelloMCPError) -> str | None:
        """Return the ``WWW-Authenticate`` value for *error*, if it needs one.

        Upstream challenges are passed through verbatim; otherwise the default
        challenge is used, narrowed to ``insufficient_scope`` for 403s.
        """
        if not isinstance(error, AuthenticationError):
            return None
        header = error.challenge_header()
        if header:
            return header
        challenge = self.default_challenge()
        if error.http_status == 403:
            challenge.error = "insufficient_scope"
            challenge.error_description = error.message
        return challenge.render()

    @staticmethod
    def extract_bearer(header: str | None) -> str | None:
        if not header:
            return None
        match = _BEARER_RE.match(header.strip())
        if match is None:
            return None
        return match.group(1).strip() or None

    # ------------------------------------------------------------------
    # Starlette integration
    # ------------------------------------------------------------------

    def protected_resource_metadata(self) -> dict[str, object]:
        return {
            "resource": self.config.resource,
            "authorization_servers": self.config.authorization_servers,
            "scopes_supported": self.config.scopes_supported,
            "bearer_methods_supported": ["header"],
        }

    def authorization_server_metadata(self) -> dict[str, object]:
        return {
            "issuer": self.config.issuer,
            "authorization_endpoint": self.config.authorization_endpoint,
            "token_endpoint": self.config.token_endpoint,
            "registration_endpoint": self.config.registration_endpoint,
            "jwks_uri": self.config.jwks_uri,
            "scopes_supported": self.config.scopes_supported,
            "response_types_supported": ["code"],
            "grant_types_supported": ["authorization_code"],
            "code_challenge_methods_supported": ["S256"],
            "token_endpoint_auth_methods_supported": ["none"],
        }

    def starlette_routes(self) -> list[Route]:
        headers = {"Cache-Control": f"public, max-age={self.config.cache_ttl}"}

        async def protected_resource(_request: Request) -> Response:
            return JSONResponse(self.protected_resource_metadata(), headers=headers)

        async def authorization_server(_request: Request) -> Response:
            return JSONResponse(self.authorization_server_metadata(), headers=headers)

        return [
            Route(self.config.protected_resource_path, protected_resource, methods=["GET"]),
            Route(self.config.authorization_server_path, authorization_server, methods=["GET"]),
        ]


__all__ = ["AuthorizationConfig", "AuthorizationManager"]
