"""Tool definition extraction for discovery.

The catalog is produced by running the regular registration sweep with a
recording registrar, so it can never drift from what tools/call executes.
No Smartsheet call is made and no credential is needed.
"""

from shared.logging import get_logger
from shared.models import ToolDefinition
from domains import ToolSweep, register_all_tools
from mcp_server.registry import RecordingRegistrar
from smartsheet_api import SmartsheetAPI

logger = get_logger(__name__)


class ToolDefinitionExtractor:
    """Produces the discovery catalog."""

    def __init__(self, sweep: ToolSweep = register_all_tools) -> None:
        self._sweep = sweep

    def extract(self, allow_delete_tools: bool = False) -> list[ToolDefinition]:
        """
        List tool definitions in registration order.

        Args:
            allow_delete_tools: Include deletion-capable tools

        Returns:
            Tool definitions
        """
        # Handlers are never invoked, so the placeholder client is never used
        placeholder = SmartsheetAPI(access_token="", base_url="")
        registrar = RecordingRegistrar()
        self._sweep(registrar, placeholder, allow_delete_tools)

        definitions = registrar.definitions
        logger.debug(
            "Tool definitions extracted",
            count=len(definitions),
            allow_delete_tools=allow_delete_tools,
        )
        return definitions
