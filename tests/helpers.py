# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers: a scripted Admin API and fake token flows."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
import json
from typing import Any

import anyio
import httpx

from hellomcp.config import HelloConfig
from hellomcp.server import MCPServer


ADMIN_BASE = "https://admin.hello.test"
UPSTREAM_CHALLENGE = 'Bearer realm="admin", error="invalid_token", error_description="token expired"'

Responder = Callable[[httpx.Request], httpx.Response]


def json_response(status: int, payload: Any = None, *, headers: dict[str, str] | None = None) -> httpx.Response:
    if payload is None:
        return httpx.Response(status, headers=headers)
    return httpx.Response(status, json=payload, headers=headers)


class FakeAdminAPI:
    """Scripted Admin API served through ``httpx.MockTransport``.

    Responses queued for a route are consumed in order; the last one repeats.
    Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[httpx.Response | Responder]] = defaultdict(list)

    def add(self, method: str, path: str, *responses: httpx.Response | Responder) -> None:
        self._routes[(method.upper(), path)].extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return json_response(404, {"error": "not_found"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        return entry(request) if callable(entry) else entry

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


class FakeFlow:
    """Token flow returning scripted tokens, optionally held open by a gate."""

    def __init__(self, *tokens: str, gate: anyio.Event | None = None, error: Exception | None = None) -> None:
        self._tokens = list(tokens) or ["token-1"]
        self.gate = gate
        self.error = error
        self.runs = 0

    async def run(self) -> str:
        self.runs += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        index = min(self.runs - 1, len(self._tokens) - 1)
        return self._tokens[index]


def make_server(admin: FakeAdminAPI, config: HelloConfig | None = None, **kwargs: Any) -> MCPServer:
    config = config or HelloConfig(domain="hello.test", access_token="env-token")
    return MCPServer(config, http_client=admin.client(), open_browser=None, **kwargs)


def rpc(method: str, params: dict[str, Any] | None = None, *, request_id: int | str | None = 1) -> dict[str, Any]:
    envelope: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if request_id is not None:
        envelope["id"] = request_id
    if params is not None:
        envelope["params"] = params
    return envelope


def tool_call(name: str, arguments: dict[str, Any] | None = None, *, request_id: int = 1) -> dict[str, Any]:
    return rpc("tools/call", {"name": name, "arguments": arguments or {}}, request_id=request_id)


def structured(body: dict[str, Any]) -> Any:
    """Return the structured payload of a successful ``tools/call`` body."""
    result = body["result"]
    if "structuredContent" in result:
        return result["structuredContent"]
    return json.loads(result["content"][0]["text"])
