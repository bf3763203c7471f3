"""MCP Server - JSON-RPC gateway to the Smartsheet tools.

Discovers tools by recording their registrations, executes one tool per
call against a cached per-credential Smartsheet client, and gates
execution behind a shared secret.
"""

from mcp_server.registry import ExecutingRegistrar, RecordingRegistrar
from mcp_server.cache import ClientCache, InsertionOrderPolicy, LeastRecentlyUsedPolicy
from mcp_server.discovery import ToolDefinitionExtractor
from mcp_server.executor import ToolExecutionEngine, ToolNotFoundError
from mcp_server.auth import AuthConfig, check_tool_call_auth
from mcp_server.audit import AuditLogger
from mcp_server.jsonrpc import JsonRpcRouter

__all__ = [
    "ExecutingRegistrar",
    "RecordingRegistrar",
    "ClientCache",
    "InsertionOrderPolicy",
    "LeastRecentlyUsedPolicy",
    "ToolDefinitionExtractor",
    "ToolExecutionEngine",
    "ToolNotFoundError",
    "AuthConfig",
    "check_tool_call_auth",
    "AuditLogger",
    "JsonRpcRouter",
]
