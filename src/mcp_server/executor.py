"""Tool execution engine.

Runs exactly one named tool per call. The full registration sweep is
repeated for every call with an executing registrar bound to the
caller's cached client; the matching handler fires during the sweep and
its result is awaited afterwards.
"""

import inspect
from typing import Any

from shared.logging import get_logger
from shared.models import CredentialKey
from domains import ToolSweep, register_all_tools
from mcp_server.cache import ClientCache
from mcp_server.registry import ExecutingRegistrar
from smartsheet_api import SmartsheetAPI

logger = get_logger(__name__)


class ToolNotFoundError(LookupError):
    """No registered tool has the requested name."""

    def __init__(self, tool_name: Any) -> None:
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionEngine:
    """Executes tools/call requests against cached Smartsheet clients."""

    def __init__(
        self,
        cache: ClientCache[CredentialKey, SmartsheetAPI],
        sweep: ToolSweep = register_all_tools,
    ) -> None:
        self.cache = cache
        self._sweep = sweep

    async def execute(
        self,
        credential: CredentialKey,
        allow_delete_tools: bool,
        tool_name: str,
        arguments: dict[str, Any],
    ) -> Any:
        """
        Execute a tool and return its result verbatim.

        Arguments are passed to the handler unvalidated.

        Raises:
            ToolNotFoundError: If no domain registers ``tool_name``
        """
        api = self.cache.get_or_create(credential)

        registrar = ExecutingRegistrar(tool_name, arguments)
        try:
            self._sweep(registrar, api, allow_delete_tools)
        except Exception:
            # The matched handler's coroutine will never be awaited
            if inspect.iscoroutine(registrar.result):
                registrar.result.close()
            raise

        if not registrar.found:
            raise ToolNotFoundError(tool_name)

        result = registrar.result
        if inspect.isawaitable(result):
            result = await result

        logger.debug("Tool executed", tool=tool_name, credential=credential.fingerprint)
        return result
