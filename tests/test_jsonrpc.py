"""Tests for the JSON-RPC router and the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from shared.config import Settings
from shared.models import FieldSchema

SECRET = "s3cret"
API_HEADERS = {"x-smartsheet-api-key": "token-123", "x-secret-key": SECRET}


def fake_sweep(registrar, api, allow_delete_tools):
    async def echo(arguments):
        return {"content": [{"type": "text", "text": arguments.get("text", "")}]}

    registrar.tool("echo", "Echo", {"text": FieldSchema(description="Text")}, echo)


def make_router(require_auth=True, secret_key=SECRET):
    from mcp_server.auth import AuthConfig
    from mcp_server.cache import ClientCache
    from mcp_server.discovery import ToolDefinitionExtractor
    from mcp_server.executor import ToolExecutionEngine
    from mcp_server.jsonrpc import JsonRpcRouter

    cache = ClientCache(lambda key: object())
    return JsonRpcRouter(
        extractor=ToolDefinitionExtractor(sweep=fake_sweep),
        engine=ToolExecutionEngine(cache, sweep=fake_sweep),
        auth_config=AuthConfig(require_auth=require_auth, secret_key=secret_key),
    )


def rpc(method, params=None, request_id=1):
    body = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        body["params"] = params
    return body


class TestJsonRpcRouter:
    """Tests for JSON-RPC dispatch."""

    @pytest.mark.asyncio
    async def test_non_object_body_is_parse_error(self):
        router = make_router()

        for body in (None, [rpc("initialize")], "initialize", 42):
            reply = await router.handle(body, {})
            assert reply.status_code == 200
            assert reply.body == {
                "jsonrpc": "2.0",
                "error": {"code": -32700, "message": "Parse error: Invalid JSON"},
                "id": None,
            }

    @pytest.mark.asyncio
    async def test_unknown_method(self):
        router = make_router()

        reply = await router.handle(rpc("resources/list", request_id="abc"), {})

        assert reply.body["error"]["code"] == -32601
        assert reply.body["error"]["message"] == "Method not found: resources/list"
        assert reply.body["id"] == "abc"
        assert "result" not in reply.body

    @pytest.mark.asyncio
    async def test_id_echoed_when_absent(self):
        router = make_router()

        body = rpc("initialize")
        del body["id"]
        reply = await router.handle(body, {})

        assert reply.body["id"] is None
        assert reply.body["result"]["protocolVersion"] == "2024-11-05"

    @pytest.mark.asyncio
    async def test_tools_call_success(self):
        router = make_router()

        reply = await router.handle(
            rpc("tools/call", {"name": "echo", "arguments": {"text": "hi"}}, request_id=9),
            API_HEADERS,
        )

        assert reply.status_code == 200
        assert reply.body == {
            "jsonrpc": "2.0",
            "result": {"content": [{"type": "text", "text": "hi"}]},
            "id": 9,
        }

    @pytest.mark.asyncio
    async def test_missing_api_key_creates_no_client(self):
        router = make_router()

        reply = await router.handle(
            rpc("tools/call", {"name": "echo", "arguments": {}}),
            {"x-secret-key": SECRET},
        )

        assert reply.body["error"]["code"] == -32602
        assert "x-smartsheet-api-key" in reply.body["error"]["message"]
        assert len(router.engine.cache) == 0

    @pytest.mark.asyncio
    async def test_missing_tool_name_is_tool_not_found(self):
        router = make_router()

        reply = await router.handle(rpc("tools/call", {"arguments": {}}, request_id=7), API_HEADERS)

        assert reply.status_code == 200
        assert reply.body["error"] == {
            "code": -32603,
            "message": "Tool execution error: Tool not found: None",
        }
        assert reply.body["id"] == 7

    @pytest.mark.asyncio
    async def test_non_object_params_on_tools_call_is_tool_not_found(self):
        router = make_router()

        reply = await router.handle(rpc("tools/call", ["echo"], request_id=8), API_HEADERS)

        assert reply.body["error"]["code"] == -32603
        assert "Tool not found" in reply.body["error"]["message"]
        assert reply.body["id"] == 8

    @pytest.mark.asyncio
    async def test_non_object_params_ignored_by_tools_list(self):
        router = make_router()

        reply = await router.handle(rpc("tools/list", ["x"]), {})

        assert [t["name"] for t in reply.body["result"]["tools"]] == ["echo"]

    @pytest.mark.asyncio
    async def test_unknown_tool_is_internal_error(self):
        router = make_router()

        reply = await router.handle(
            rpc("tools/call", {"name": "nonexistent_tool", "arguments": {}}, request_id=5),
            API_HEADERS,
        )

        assert reply.status_code == 200
        assert reply.body["error"] == {
            "code": -32603,
            "message": "Tool execution error: Tool not found: nonexistent_tool",
        }
        assert reply.body["id"] == 5

    @pytest.mark.asyncio
    async def test_auth_failures_return_401(self):
        router = make_router()

        for headers, message in (
            ({"x-smartsheet-api-key": "t"}, "Authentication required for tool execution"),
            ({"x-smartsheet-api-key": "t", "x-secret-key": "wrong"}, "Invalid authentication for tool execution"),
        ):
            reply = await router.handle(rpc("tools/call", {"name": "echo"}, request_id=3), headers)
            assert reply.status_code == 401
            assert reply.body["error"] == {"code": -32001, "message": message}
            assert reply.body["id"] == 3

    @pytest.mark.asyncio
    async def test_auth_checked_before_api_key(self):
        router = make_router()

        reply = await router.handle(rpc("tools/call", {"name": "echo"}), {})

        assert reply.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_secret_disables_auth(self):
        router = make_router(require_auth=True, secret_key="")

        reply = await router.handle(
            rpc("tools/call", {"name": "echo", "arguments": {"text": "x"}}),
            {"x-smartsheet-api-key": "t"},
        )

        assert reply.status_code == 200
        assert "result" in reply.body

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal_error(self):
        router = make_router()

        def broken(allow_delete_tools=False):
            raise RuntimeError("catalog unavailable")

        router.extractor.extract = broken

        reply = await router.handle(rpc("tools/list", request_id=2), {})

        assert reply.body["error"] == {"code": -32603, "message": "Internal error: catalog unavailable"}
        assert reply.body["id"] == 2


@pytest.fixture
def app():
    from mcp_server.main import create_app

    return create_app(Settings(require_auth=True, secret_key=SECRET, enable_audit=False))


@pytest.fixture
def client(app):
    return TestClient(app)


class TestHttpEndpoints:
    """Tests for the FastAPI surface."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "MCP Smartsheet Server"
        assert "/mcp" in response.json()["endpoints"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "mcp-smartsheet", "version": "0.1.0"}

    def test_tools_excludes_delete_tools(self, client):
        response = client.get("/tools")

        names = [t["name"] for t in response.json()["tools"]]
        assert "get_sheet" in names
        assert "delete_rows" not in names
        assert all("inputSchema" in t for t in response.json()["tools"])

    def test_unknown_path(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"
        assert response.json()["message"] == "Endpoint GET /nope not found"

    def test_initialize(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "initialize", "params": {}, "id": 1})

        body = response.json()
        assert response.status_code == 200
        assert body["id"] == 1
        assert body["result"]["protocolVersion"] == "2024-11-05"
        assert body["result"]["serverInfo"]["name"] == "smartsheet"
        assert body["result"]["capabilities"] == {"tools": {}, "prompts": None, "resources": None}

    def test_discovery_identical_with_and_without_auth_headers(self, client):
        for method in ("initialize", "tools/list"):
            bare = client.post("/mcp", json=rpc(method))
            authed = client.post("/mcp", json=rpc(method), headers=API_HEADERS)

            assert bare.status_code == authed.status_code == 200
            assert bare.json() == authed.json()

    def test_tools_list_delete_header(self, client):
        default = client.post("/mcp", json=rpc("tools/list"))
        allowed = client.post("/mcp", json=rpc("tools/list"), headers={"x-allow-delete-tools": "true"})

        default_names = {t["name"] for t in default.json()["result"]["tools"]}
        allowed_names = {t["name"] for t in allowed.json()["result"]["tools"]}
        assert allowed_names - default_names == {"delete_rows"}

    def test_tools_list_is_repeatable(self, client):
        first = client.post("/mcp", json=rpc("tools/list"))
        second = client.post("/mcp", json=rpc("tools/list"))

        assert {t["name"] for t in first.json()["result"]["tools"]} == {
            t["name"] for t in second.json()["result"]["tools"]
        }

    def test_malformed_json(self, client):
        response = client.post(
            "/mcp", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "jsonrpc": "2.0",
            "error": {"code": -32700, "message": "Parse error: Invalid JSON"},
            "id": None,
        }

    def test_non_finite_constants_are_parse_errors(self, client):
        for constant in (b"NaN", b"Infinity", b"-Infinity"):
            response = client.post(
                "/mcp",
                content=b'{"jsonrpc": "2.0", "method": "initialize", "id": ' + constant + b"}",
                headers={"content-type": "application/json"},
            )

            assert response.status_code == 200
            assert response.json()["error"]["code"] == -32700
            assert response.json()["id"] is None

    def test_nonexistent_tool(self, client, app):
        response = client.post(
            "/mcp",
            json=rpc("tools/call", {"name": "nonexistent_tool", "arguments": {}}, request_id=5),
            headers=API_HEADERS,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["error"]["code"] == -32603
        assert "Tool not found" in body["error"]["message"]
        assert body["id"] == 5

    def test_missing_api_key(self, client, app):
        response = client.post(
            "/mcp",
            json=rpc("tools/call", {"name": "get_current_user", "arguments": {}}),
            headers={"x-secret-key": SECRET},
        )

        assert response.json()["error"]["code"] == -32602
        assert len(app.state.cache) == 0

    def test_wrong_secret_is_401(self, client):
        response = client.post(
            "/mcp",
            json=rpc("tools/call", {"name": "get_current_user", "arguments": {}}),
            headers={"x-smartsheet-api-key": "token", "x-secret-key": "nope"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == -32001

    def test_tools_call_reuses_cached_client(self, client, app):
        from mcp_server.executor import ToolExecutionEngine

        app.state.router.engine = ToolExecutionEngine(app.state.cache, sweep=fake_sweep)

        for _ in range(3):
            response = client.post(
                "/mcp",
                json=rpc("tools/call", {"name": "echo", "arguments": {"text": "hi"}}),
                headers={**API_HEADERS, "x-smartsheet-endpoint": "https://api.smartsheet.eu/2.0"},
            )
            assert response.json()["result"]["content"][0]["text"] == "hi"

        assert len(app.state.cache) == 1
