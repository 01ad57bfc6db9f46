# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Router behaviour: envelope validation, dispatch and error classification."""

from __future__ import annotations

from mcp.shared.exceptions import McpError
import pytest

from hellomcp import tool, types
from hellomcp.config import HelloConfig
from hellomcp.errors import ScopeError

from tests.helpers import UPSTREAM_CHALLENGE, FakeAdminAPI, json_response, make_server, rpc, structured, tool_call


DEFAULT_CHALLENGE = (
    'Bearer realm="Hello MCP Server", error="invalid_request", error_description="Valid bearer token required", '
    'scope="mcp", resource_metadata="https://mcp.hello.test/.well-known/oauth-protected-resource"'
)


@pytest.mark.anyio
@pytest.mark.parametrize("version", ["1.0", None, 2.0, "2"])
async def test_wrong_jsonrpc_version_rejected_before_dispatch(admin: FakeAdminAPI, version: object) -> None:
    server = make_server(admin)
    envelope = {"jsonrpc": version, "id": 7, "method": "tools/call", "params": {"name": "hello_get_profile"}}

    routed = await server.handle(envelope)

    assert routed.http_status == 400
    assert routed.body["error"]["code"] == -32600
    assert routed.body["id"] == 7
    assert admin.requests == []


@pytest.mark.anyio
@pytest.mark.parametrize(
    "envelope",
    [
        ["not", "an", "object"],
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": {"nested": True}, "method": "ping"},
        {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1, 2]},
    ],
)
async def test_malformed_envelopes_are_invalid_requests(admin: FakeAdminAPI, envelope: object) -> None:
    routed = await make_server(admin).handle(envelope)

    assert routed.http_status == 400
    assert routed.body["error"]["code"] == -32600


@pytest.mark.anyio
async def test_initialize_reports_server_and_capabilities(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(
        rpc("initialize", {"protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": {"name": "t", "version": "1"}})
    )

    result = routed.body["result"]
    assert routed.http_status == 200
    assert result["protocolVersion"] == "2024-11-05"
    assert result["serverInfo"] == {"name": "hello-admin-mcp", "version": "0.1.0"}
    assert "tools" in result["capabilities"]
    assert "resources" in result["capabilities"]


@pytest.mark.anyio
async def test_initialize_unknown_version_falls_back_to_latest(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(rpc("initialize", {"protocolVersion": "1999-01-01"}))
    assert routed.body["result"]["protocolVersion"] == types.LATEST_PROTOCOL_VERSION


@pytest.mark.anyio
async def test_ping_and_initialized(admin: FakeAdminAPI) -> None:
    server = make_server(admin)

    assert (await server.handle(rpc("ping"))).body["result"] == {}
    assert (await server.handle(rpc("initialized"))).body["result"] == {}


@pytest.mark.anyio
async def test_notifications_have_no_body(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(rpc("notifications/initialized", request_id=None))

    assert routed.body is None
    assert routed.http_status == 202


@pytest.mark.anyio
async def test_unknown_method_is_method_not_found(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(rpc("prompts/list"))

    assert routed.http_status == 200
    assert routed.body["error"]["code"] == -32601


@pytest.mark.anyio
async def test_unknown_tool_is_method_not_found(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(tool_call("hello_delete_everything"))

    error = routed.body["error"]
    assert error["code"] == -32601
    assert error["message"] == "Tool not found: hello_delete_everything"


@pytest.mark.anyio
async def test_invalid_arguments_are_invalid_params(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(tool_call("hello_read_publisher", {"unexpected": 1}))

    error = routed.body["error"]
    assert error["code"] == -32602
    assert isinstance(error["data"], list)
    assert admin.requests == []


@pytest.mark.anyio
async def test_tools_list_contains_admin_tools(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(rpc("tools/list"))

    tools = {entry["name"]: entry for entry in routed.body["result"]["tools"]}
    assert set(tools) == {
        "hello_get_profile",
        "hello_create_publisher",
        "hello_update_publisher",
        "hello_read_publisher",
        "hello_read_application",
        "hello_create_application",
        "hello_update_application",
        "hello_update_logo",
        "hello_create_secret",
    }
    schema = tools["hello_update_logo"]["inputSchema"]
    assert schema["type"] == "object"
    assert set(schema["required"]) == {"publisher_id", "application_id"}
    assert schema["additionalProperties"] is False


@pytest.mark.anyio
async def test_successful_tool_call(admin: FakeAdminAPI) -> None:
    admin.add("GET", "/api/v1/profile", json_response(200, {"profile": {"name": "Dev"}}))

    routed = await make_server(admin).handle(tool_call("hello_get_profile"))

    assert routed.http_status == 200
    assert structured(routed.body) == {"profile": {"name": "Dev"}}
    assert admin.requests[0].headers["authorization"] == "Bearer env-token"


@pytest.mark.anyio
async def test_upstream_401_promoted_with_challenge_verbatim(admin: FakeAdminAPI) -> None:
    admin.add(
        "GET",
        "/api/v1/profile",
        json_response(401, {"error": "invalid_token"}, headers={"WWW-Authenticate": UPSTREAM_CHALLENGE}),
    )

    routed = await make_server(admin).handle(tool_call("hello_get_profile", request_id=9))

    assert routed.http_status == 401
    assert routed.headers["WWW-Authenticate"] == UPSTREAM_CHALLENGE
    assert routed.body == {
        "jsonrpc": "2.0",
        "id": 9,
        "error": {
            "code": -32001,
            "message": "Authentication required",
            "data": {"error": "invalid_request", "error_description": "Valid bearer token required"},
        },
    }


@pytest.mark.anyio
async def test_upstream_401_without_challenge_uses_default(admin: FakeAdminAPI) -> None:
    admin.add("GET", "/api/v1/profile", json_response(401, {"error": "invalid_token"}))

    routed = await make_server(admin).handle(tool_call("hello_get_profile"))

    assert routed.http_status == 401
    assert routed.headers["WWW-Authenticate"] == DEFAULT_CHALLENGE


@pytest.mark.anyio
async def test_missing_token_without_flow_requires_authentication(admin: FakeAdminAPI) -> None:
    server = make_server(admin, HelloConfig(domain="hello.test", access_token=None))

    routed = await server.handle(tool_call("hello_get_profile"))

    assert routed.http_status == 401
    assert routed.body["error"]["code"] == -32001
    assert routed.headers["WWW-Authenticate"] == DEFAULT_CHALLENGE
    assert admin.requests == []


@pytest.mark.anyio
async def test_scope_error_maps_to_403(admin: FakeAdminAPI) -> None:
    server = make_server(admin)

    @tool("needs_admin_scope")
    def needs_admin_scope() -> dict:
        raise ScopeError("Insufficient scope", scope="admin")

    server.register_tool(needs_admin_scope)
    routed = await server.handle(tool_call("needs_admin_scope"))

    assert routed.http_status == 403
    assert routed.body["error"]["code"] == -32003
    assert 'error="insufficient_scope"' in routed.headers["WWW-Authenticate"]


@pytest.mark.anyio
async def test_mcp_error_keeps_its_code(admin: FakeAdminAPI) -> None:
    server = make_server(admin)

    @tool("custom_failure")
    def custom_failure() -> dict:
        raise McpError(types.ErrorData(code=-32099, message="custom"))

    server.register_tool(custom_failure)
    routed = await server.handle(tool_call("custom_failure"))

    assert routed.body["error"] == {"code": -32099, "message": "custom"}


@pytest.mark.anyio
async def test_unexpected_exception_is_internal_error(admin: FakeAdminAPI) -> None:
    server = make_server(admin)

    @tool("explodes")
    def explodes() -> dict:
        raise RuntimeError("Authentication token not found in flux capacitor")

    server.register_tool(explodes)
    routed = await server.handle(tool_call("explodes"))

    error = routed.body["error"]
    assert routed.http_status == 200
    assert error["code"] == -32603
    assert error["data"] == {"message": "Authentication token not found in flux capacitor"}


@pytest.mark.anyio
async def test_resources_list_and_read(admin: FakeAdminAPI) -> None:
    server = make_server(admin)

    listed = await server.handle(rpc("resources/list"))
    uris = [entry["uri"] for entry in listed.body["result"]["resources"]]
    assert any(uri.startswith("hello://supported-logo-formats") for uri in uris)
    assert "https://www.hello.dev/docs/" in uris

    read = await server.handle(rpc("resources/read", {"uri": "hello://supported-logo-formats"}))
    (content,) = read.body["result"]["contents"]
    assert content["mimeType"] == "application/json"
    assert "image/png" in content["text"]


@pytest.mark.anyio
async def test_unknown_resource_is_invalid_params(admin: FakeAdminAPI) -> None:
    routed = await make_server(admin).handle(rpc("resources/read", {"uri": "hello://nope"}))

    assert routed.body["error"]["code"] == -32602
    assert routed.body["error"]["message"] == "Resource not found: hello://nope"
