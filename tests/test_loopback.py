# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Loopback callback receiver: callback routing, binding and timeouts."""

from __future__ import annotations

import socket

import httpx
import pytest

from hellomcp.auth.loopback import CallbackOutcome, LoopbackReceiver, build_callback_app
from hellomcp.errors import (
    AuthorizationDenied,
    AuthorizationTimeout,
    CallbackBindError,
    MissingCodeError,
    StateMismatchError,
)


AUTHORIZE_URL = "https://wallet.hello.test/authorize?state=expected"


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _client(outcome: CallbackOutcome) -> httpx.AsyncClient:
    app = build_callback_app("expected", AUTHORIZE_URL, outcome)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://127.0.0.1")


@pytest.mark.anyio
async def test_callback_resolves_code_for_matching_state() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        response = await client.get("/callback", params={"state": "expected", "code": "abc"})

    assert response.status_code == 200
    assert "Authentication complete" in response.text
    assert await outcome.wait() == "abc"


@pytest.mark.anyio
async def test_state_mismatch_never_resolves_a_code() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        response = await client.get("/callback", params={"state": "forged", "code": "abc"})

    assert response.status_code == 400
    with pytest.raises(StateMismatchError):
        await outcome.wait()


@pytest.mark.anyio
async def test_error_parameter_rejects_attempt() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        response = await client.get(
            "/callback", params={"error": "access_denied", "error_description": "user cancelled"}
        )

    assert response.status_code == 400
    with pytest.raises(AuthorizationDenied) as excinfo:
        await outcome.wait()
    assert excinfo.value.error == "access_denied"
    assert "user cancelled" in excinfo.value.message


@pytest.mark.anyio
async def test_missing_code_rejects_attempt() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        response = await client.get("/callback", params={"state": "expected"})

    assert response.status_code == 400
    with pytest.raises(MissingCodeError):
        await outcome.wait()


@pytest.mark.anyio
async def test_second_callback_is_refused() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        await client.get("/callback", params={"state": "expected", "code": "first"})
        replay = await client.get("/callback", params={"state": "expected", "code": "second"})

    assert replay.status_code == 400
    assert await outcome.wait() == "first"


@pytest.mark.anyio
async def test_landing_page_and_start_redirect() -> None:
    outcome = CallbackOutcome()
    async with _client(outcome) as client:
        landing = await client.get("/")
        start = await client.get("/auth/start")

    assert landing.status_code == 200
    assert "/auth/start" in landing.text
    assert start.status_code == 302
    assert start.headers["location"] == AUTHORIZE_URL
    assert not outcome.resolved


@pytest.mark.anyio
async def test_receiver_returns_code_from_real_listener() -> None:
    port = _free_port()
    opened: list[str] = []

    def open_browser(url: str) -> None:
        opened.append(url)
        httpx.get(f"{url}callback", params={"state": "expected", "code": "live-code"}, timeout=5)

    receiver = LoopbackReceiver(host="127.0.0.1", port=port, timeout=10, open_browser=open_browser)

    code = await receiver.await_authorization_code("expected", AUTHORIZE_URL)

    assert code == "live-code"
    assert opened == [f"http://127.0.0.1:{port}/"]
    # listener is closed once the attempt settles
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        probe.bind(("127.0.0.1", port))


@pytest.mark.anyio
async def test_receiver_times_out() -> None:
    receiver = LoopbackReceiver(host="127.0.0.1", port=_free_port(), timeout=0.2, open_browser=None)

    with pytest.raises(AuthorizationTimeout):
        await receiver.await_authorization_code("expected", AUTHORIZE_URL)


@pytest.mark.anyio
async def test_port_in_use_is_a_bind_error() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen(1)
        port = occupied.getsockname()[1]

        receiver = LoopbackReceiver(host="127.0.0.1", port=port, timeout=1, open_browser=None)
        with pytest.raises(CallbackBindError) as excinfo:
            await receiver.await_authorization_code("expected", AUTHORIZE_URL)

    assert str(port) in excinfo.value.message
    assert excinfo.value.code == -32001
