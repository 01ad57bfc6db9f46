# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from hellomcp.config import HelloConfig
from hellomcp.errors import AuthenticationError, Challenge, ParamsValidationError, ScopeError
from hellomcp.server.authorization import AuthorizationConfig, AuthorizationManager


@pytest.fixture
def manager() -> AuthorizationManager:
    return AuthorizationManager(AuthorizationConfig.from_hello_config(HelloConfig(domain="hello.test")))


def test_challenge_render() -> None:
    assert Challenge().render() == "Bearer"
    assert Challenge(realm="r", error="invalid_token").render() == 'Bearer realm="r", error="invalid_token"'


def test_default_challenge(manager: AuthorizationManager) -> None:
    assert manager.challenge_for(AuthenticationError()) == (
        'Bearer realm="Hello MCP Server", error="invalid_request", '
        'error_description="Valid bearer token required", scope="mcp", '
        'resource_metadata="https://mcp.hello.test/.well-known/oauth-protected-resource"'
    )


def test_upstream_challenge_is_verbatim(manager: AuthorizationManager) -> None:
    upstream = 'Bearer error="invalid_token", error_description="expired"'
    assert manager.challenge_for(AuthenticationError(challenge=upstream)) == upstream


def test_scope_error_challenge(manager: AuthorizationManager) -> None:
    header = manager.challenge_for(ScopeError("Needs admin scope"))
    assert 'error="insufficient_scope"' in header
    assert 'error_description="Needs admin scope"' in header


def test_non_auth_errors_have_no_challenge(manager: AuthorizationManager) -> None:
    assert manager.challenge_for(ParamsValidationError("bad")) is None


@pytest.mark.parametrize(
    ("header", "token"),
    [
        ("Bearer abc", "abc"),
        ("bearer   abc  ", "abc"),
        ("BEARER a.b.c", "a.b.c"),
        ("Basic dXNlcg==", None),
        ("Bearer", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer(header: str | None, token: str | None) -> None:
    assert AuthorizationManager.extract_bearer(header) == token


def test_metadata_documents(manager: AuthorizationManager) -> None:
    resource = manager.protected_resource_metadata()
    server = manager.authorization_server_metadata()

    assert resource["resource"] == "https://mcp.hello.test/"
    assert resource["bearer_methods_supported"] == ["header"]
    assert server["token_endpoint"] == "https://wallet.hello.test/oauth/token"
    assert server["jwks_uri"] == "https://issuer.hello.test/.well-known/jwks"
    assert server["grant_types_supported"] == ["authorization_code"]
