# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Server configuration.

All environment lookups live in :meth:`HelloConfig.from_env`; the rest of the
package receives an explicit :class:`HelloConfig` instance.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from typing import Final


SERVER_NAME: Final[str] = "hello-admin-mcp"
SERVER_VERSION: Final[str] = "0.1.0"
DOCS_URL: Final[str] = "https://www.hello.dev/docs/mcp/"
MCP_SCOPE: Final[str] = "mcp"
DEFAULT_REALM: Final[str] = "Hello MCP Server"


@dataclass(slots=True)
class HelloConfig:
    """Runtime settings for the admin MCP server."""

    domain: str = "hello.coop"
    admin_url: str | None = None
    access_token: str | None = None
    stdio_client_id: str = "hello_mcp_stdio_client"
    host: str = "0.0.0.0"
    port: int = 3000
    callback_host: str = "localhost"
    callback_port: int = 3000
    auth_timeout: float = 300.0
    request_timeout: float = 30.0
    scopes: list[str] = field(default_factory=lambda: [MCP_SCOPE])

    # ------------------------------------------------------------------
    # Derived endpoints
    # ------------------------------------------------------------------

    @property
    def admin_base_url(self) -> str:
        return (self.admin_url or f"https://admin.{self.domain}").rstrip("/")

    @property
    def wallet_base_url(self) -> str:
        return f"https://wallet.{self.domain}"

    @property
    def issuer_base_url(self) -> str:
        return f"https://issuer.{self.domain}"

    @property
    def mcp_base_url(self) -> str:
        return f"https://mcp.{self.domain}"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.wallet_base_url}/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.wallet_base_url}/oauth/token"

    @property
    def registration_endpoint(self) -> str:
        return f"https://admin.{self.domain}/register/mcp"

    @property
    def jwks_uri(self) -> str:
        return f"{self.issuer_base_url}/.well-known/jwks"

    @property
    def resource_metadata_url(self) -> str:
        return f"{self.mcp_base_url}/.well-known/oauth-protected-resource"

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.callback_host}:{self.callback_port}/callback"

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HelloConfig:
        """Build a configuration from environment variables.

        Recognised keys: ``HELLO_DOMAIN``, ``HELLO_ADMIN``, ``HELLO_ACCESS_TOKEN``,
        ``MCP_STDIO_CLIENT_ID``, ``HOST``, ``PORT``, ``HELLO_CALLBACK_PORT`` and
        ``HELLO_AUTH_TIMEOUT``.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            domain=env.get("HELLO_DOMAIN") or defaults.domain,
            admin_url=env.get("HELLO_ADMIN") or None,
            access_token=env.get("HELLO_ACCESS_TOKEN") or None,
            stdio_client_id=env.get("MCP_STDIO_CLIENT_ID") or defaults.stdio_client_id,
            host=env.get("HOST") or defaults.host,
            port=_read_int(env, "PORT", defaults.port),
            callback_port=_read_int(env, "HELLO_CALLBACK_PORT", defaults.callback_port),
            auth_timeout=_read_float(env, "HELLO_AUTH_TIMEOUT", defaults.auth_timeout),
        )


def _read_int(env: Mapping[str, str], key: str, default: int) -> int:
    value = env.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {value!r}") from exc


def _read_float(env: Mapping[str, str], key: str, default: float) -> float:
    value = env.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {value!r}") from exc


__all__ = ["DEFAULT_REALM", "DOCS_URL", "MCP_SCOPE", "SERVER_NAME", "SERVER_VERSION", "HelloConfig"]
