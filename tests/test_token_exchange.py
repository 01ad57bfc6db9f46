# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest

from hellomcp.auth.exchange import TokenExchangeClient
from hellomcp.errors import TokenExchangeFailed


TOKEN_ENDPOINT = "https://wallet.hello.test/oauth/token"


def _client(handler) -> TokenExchangeClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TokenExchangeClient(token_endpoint=TOKEN_ENDPOINT, client_id="stdio-client", http_client=http_client)


@pytest.mark.anyio
async def test_exchange_posts_form_and_returns_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "tok", "token_type": "bearer", "id_token": "ignored"})

    token = await _client(handler).exchange("code-1", "verifier-1", "http://localhost:3000/callback")

    assert token == "tok"
    (request,) = seen
    assert str(request.url) == TOKEN_ENDPOINT
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
    assert form == {
        "grant_type": "authorization_code",
        "code": "code-1",
        "code_verifier": "verifier-1",
        "client_id": "stdio-client",
        "redirect_uri": "http://localhost:3000/callback",
    }


@pytest.mark.anyio
async def test_non_success_status_fails() -> None:
    client = _client(lambda request: httpx.Response(400, text="invalid_grant"))

    with pytest.raises(TokenExchangeFailed) as excinfo:
        await client.exchange("code", "verifier", "http://localhost:3000/callback")

    assert excinfo.value.status == 400
    assert excinfo.value.message == "Token exchange failed: 400 invalid_grant"
    assert excinfo.value.to_error_data().data == {"status": 400, "body": "invalid_grant"}


@pytest.mark.anyio
async def test_body_without_access_token_fails() -> None:
    client = _client(lambda request: httpx.Response(200, json={"token_type": "bearer"}))

    with pytest.raises(TokenExchangeFailed, match="No access token received") as excinfo:
        await client.exchange("code", "verifier", "http://localhost:3000/callback")

    error_data = excinfo.value.to_error_data()
    assert error_data.data["status"] == 200
    assert json.loads(error_data.data["body"]) == {"token_type": "bearer"}


@pytest.mark.anyio
async def test_transport_error_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TokenExchangeFailed, match="connection refused"):
        await _client(handler).exchange("code", "verifier", "http://localhost:3000/callback")
