"""JSON-RPC 2.0 router for the /mcp endpoint.

Parses the envelope, applies the shared-secret gate to tools/call,
dispatches to discovery or execution, and turns every failure into a
JSON-RPC error object. Only authentication failures change the HTTP
status; everything else is reported with HTTP 200.
"""

import time
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel

from shared.logging import bind_context, clear_context, get_logger
from shared.models import AuditStatus, CredentialKey
from mcp_server.audit import AuditLogger
from mcp_server.auth import AuthConfig, check_tool_call_auth
from mcp_server.discovery import ToolDefinitionExtractor
from mcp_server.executor import ToolExecutionEngine, ToolNotFoundError

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# Error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
AUTH_ERROR = -32001

# Request headers
API_KEY_HEADER = "x-smartsheet-api-key"
ENDPOINT_HEADER = "x-smartsheet-endpoint"
ALLOW_DELETE_HEADER = "x-allow-delete-tools"
SECRET_KEY_HEADER = "x-secret-key"


class JsonRpcError(Exception):
    """Failure reported to the client as a JSON-RPC error object."""
    code = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MethodNotFoundError(JsonRpcError):
    code = METHOD_NOT_FOUND


class InvalidParamsError(JsonRpcError):
    code = INVALID_PARAMS


class ToolExecutionError(JsonRpcError):
    code = INTERNAL_ERROR


class ErrorObject(BaseModel):
    """JSON-RPC error object."""
    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response envelope."""
    jsonrpc: str = JSONRPC_VERSION
    result: Any = None
    error: Optional[ErrorObject] = None
    id: Any = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with exactly one of result or error."""
        return self.model_dump(exclude={"result"} if self.error else {"error"})


class RpcReply(BaseModel):
    """A response body and the HTTP status to send it with."""
    status_code: int = 200
    body: dict[str, Any]


def success_response(request_id: Any, result: Any) -> dict[str, Any]:
    return JsonRpcResponse(result=result, id=request_id).to_wire()


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return JsonRpcResponse(error=ErrorObject(code=code, message=message), id=request_id).to_wire()


def allows_delete_tools(headers: Mapping[str, str]) -> bool:
    return headers.get(ALLOW_DELETE_HEADER) == "true"


class JsonRpcRouter:
    """
    Routes JSON-RPC requests to the gateway's methods.

    Methods:
    - initialize: static server capabilities
    - tools/list: discovery catalog, no credentials needed
    - tools/call: one tool execution with the caller's Smartsheet key
    """

    def __init__(
        self,
        extractor: ToolDefinitionExtractor,
        engine: ToolExecutionEngine,
        auth_config: Optional[AuthConfig] = None,
        audit_logger: Optional[AuditLogger] = None,
        server_name: str = "smartsheet",
        server_version: str = "0.1.0",
    ) -> None:
        self.extractor = extractor
        self.engine = engine
        self.auth_config = auth_config or AuthConfig()
        self.audit_logger = audit_logger or AuditLogger(enabled=False)
        self.server_name = server_name
        self.server_version = server_version

        self._methods: dict[str, Callable[[dict[str, Any], Mapping[str, str], Any], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def handle(
        self,
        body: Any,
        headers: Mapping[str, str],
        client: str = "unknown",
    ) -> RpcReply:
        """
        Handle one decoded request body.

        Args:
            body: Decoded JSON body, or None if it could not be decoded
            headers: Request headers (lower-case names)
            client: Client address, for logging

        Returns:
            The reply to send; never raises
        """
        if not isinstance(body, dict):
            return RpcReply(body=error_response(None, PARSE_ERROR, "Parse error: Invalid JSON"))

        request_id = body.get("id")
        method = body.get("method")
        bind_context(rpc_method=method, rpc_id=request_id)

        try:
            logger.debug("Received MCP request", client=client)

            allowed, auth_error = check_tool_call_auth(
                self.auth_config.require_auth,
                self.auth_config.secret_key,
                method,
                headers.get(SECRET_KEY_HEADER),
                client=client,
            )
            if not allowed:
                return RpcReply(
                    status_code=401,
                    body=error_response(request_id, AUTH_ERROR, auth_error or "Unauthorized"),
                )

            result = await self._dispatch(method, body.get("params"), headers, request_id)
            return RpcReply(body=success_response(request_id, result))

        except JsonRpcError as e:
            return RpcReply(body=error_response(request_id, e.code, e.message))
        except Exception as e:
            logger.error("Error handling MCP request", error=str(e), exc_info=True)
            return RpcReply(body=error_response(request_id, INTERNAL_ERROR, f"Internal error: {e}"))
        finally:
            clear_context()

    async def _dispatch(
        self,
        method: Any,
        params: Any,
        headers: Mapping[str, str],
        request_id: Any,
    ) -> Any:
        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            raise MethodNotFoundError(f"Method not found: {method}")

        if params is None:
            params = {}

        return await handler(params, headers, request_id)

    async def _initialize(self, params: Any, headers: Mapping[str, str], request_id: Any) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
                "prompts": None,
                "resources": None,
            },
            "serverInfo": {
                "name": self.server_name,
                "version": self.server_version,
            },
        }

    async def _list_tools(self, params: Any, headers: Mapping[str, str], request_id: Any) -> dict[str, Any]:
        definitions = self.extractor.extract(allows_delete_tools(headers))
        return {"tools": [d.to_wire() for d in definitions]}

    async def _call_tool(self, params: Any, headers: Mapping[str, str], request_id: Any) -> Any:
        api_key = headers.get(API_KEY_HEADER)
        if not api_key:
            raise InvalidParamsError(f"Missing required header: {API_KEY_HEADER}")

        # Without a name no tool matches, so the engine reports ToolNotFound
        if not isinstance(params, dict):
            params = {}
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}
        credential = CredentialKey.from_headers(api_key, headers.get(ENDPOINT_HEADER))

        start_time = time.perf_counter()
        try:
            result = await self.engine.execute(
                credential, allows_delete_tools(headers), tool_name, arguments
            )
        except Exception as e:
            logger.error("Error calling tool", tool=tool_name, error=str(e))
            status = AuditStatus.NOT_FOUND if isinstance(e, ToolNotFoundError) else AuditStatus.ERROR
            await self._audit(tool_name, credential, arguments, status, start_time, request_id, str(e))
            raise ToolExecutionError(f"Tool execution error: {e}") from e

        is_tool_error = isinstance(result, dict) and result.get("isError") is True
        await self._audit(
            tool_name,
            credential,
            arguments,
            AuditStatus.TOOL_ERROR if is_tool_error else AuditStatus.SUCCESS,
            start_time,
            request_id,
        )
        return result

    async def _audit(
        self,
        tool_name: str,
        credential: CredentialKey,
        arguments: Any,
        status: AuditStatus,
        start_time: float,
        request_id: Any,
        error: Optional[str] = None,
    ) -> None:
        entry = self.audit_logger.create_entry(
            tool_name,
            credential,
            arguments,
            status,
            error=error,
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
            request_id=request_id,
        )
        await self.audit_logger.log(entry)
