"""Registrars used by the gateway.

Both consume the same descriptors from the domain modules:

- :class:`RecordingRegistrar` keeps discovery metadata and drops handlers.
- :class:`ExecutingRegistrar` runs the handler of one requested tool.

A registrar lives for one registration sweep; nothing is shared between
requests.
"""

from typing import Any, Optional

from shared.logging import get_logger
from shared.models import ToolDefinition, ToolDescriptor
from shared.schema import project_input_schema
from domains.base import Registrar

logger = get_logger(__name__)


class RecordingRegistrar(Registrar):
    """
    Collects tool definitions without ever invoking a handler.

    Safe to use with a credential-less API client.
    """

    def __init__(self) -> None:
        super().__init__()
        self._definitions: list[ToolDefinition] = []

    def accept(self, descriptor: ToolDescriptor) -> None:
        self._definitions.append(ToolDefinition(
            name=descriptor.name,
            description=descriptor.description,
            input_schema=project_input_schema(descriptor.input_fields),
        ))

    @property
    def definitions(self) -> list[ToolDefinition]:
        """Recorded definitions in registration order."""
        return list(self._definitions)


class ExecutingRegistrar(Registrar):
    """
    Invokes the handler of the tool named ``tool_name``.

    The handler is called as soon as its descriptor arrives and its
    (possibly pending) result is kept; every other descriptor is ignored.
    """

    def __init__(self, tool_name: str, arguments: dict[str, Any]) -> None:
        super().__init__()
        self.tool_name = tool_name
        self.arguments = arguments
        self.found = False
        self.result: Optional[Any] = None

    def accept(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name != self.tool_name:
            return

        logger.debug("Invoking tool handler", tool=descriptor.name)
        self.found = True
        self.result = descriptor.handler(self.arguments)
