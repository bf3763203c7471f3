"""Base contract for domain tool modules.

Domain modules announce their tools to a :class:`Registrar` and never see
the concrete server. What a registrar does with a descriptor (record its
metadata, or run its handler) is decided by the caller.

Handlers:
- Validate their own arguments
- Translate tool calls into Smartsheet API calls
- Return MCP text content, flagging API failures with ``isError``
"""

import functools
import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from shared.logging import get_logger
from shared.models import FieldSchema, ToolDescriptor, ToolHandler
from shared.schema import build_json_schema, validate_schema
from smartsheet_api import SmartsheetAPIError

logger = get_logger(__name__)


class ToolArgumentError(ValueError):
    """Tool arguments do not match the declared fields."""


class Registrar(ABC):
    """
    Capability that accepts tool descriptors.

    Tool names must be unique within one registration sweep.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def tool(
        self,
        name: str,
        description: str,
        input_fields: dict[str, FieldSchema],
        handler: ToolHandler,
    ) -> "Registrar":
        """Announce a tool. Returns the registrar for chaining."""
        self.register(ToolDescriptor(
            name=name,
            description=description,
            input_fields=input_fields,
            handler=handler,
        ))
        return self

    def register(self, descriptor: ToolDescriptor) -> None:
        """
        Accept a tool descriptor.

        Raises:
            ValueError: If the name was already registered in this sweep
        """
        if descriptor.name in self._seen:
            raise ValueError(f"Tool '{descriptor.name}' is already registered")
        self._seen.add(descriptor.name)
        self.accept(descriptor)

    @abstractmethod
    def accept(self, descriptor: ToolDescriptor) -> None:
        """Handle a descriptor whose name is unique in this sweep."""


def text_result(data: Any) -> dict[str, Any]:
    """Wrap an API response as MCP text content."""
    text = data if isinstance(data, str) else json.dumps(data, indent=2)
    return {"content": [{"type": "text", "text": text}]}


def error_result(message: str) -> dict[str, Any]:
    """Create an MCP error result."""
    return {"content": [{"type": "text", "text": message}], "isError": True}


def parse_arguments(
    input_fields: dict[str, FieldSchema], arguments: dict[str, Any]
) -> dict[str, Any]:
    """
    Validate tool arguments against the full schema of their fields.

    Raises:
        ToolArgumentError: If the arguments are invalid
    """
    is_valid, errors = validate_schema(arguments, build_json_schema(input_fields))
    if not is_valid:
        raise ToolArgumentError(f"Invalid arguments: {'; '.join(errors)}")
    return arguments


def api_tool(
    failure: str, input_fields: dict[str, FieldSchema]
) -> Callable[[Callable[[dict[str, Any]], Awaitable[Any]]], ToolHandler]:
    """
    Turn an API coroutine into a tool handler.

    The wrapped handler validates arguments, wraps the API response as text
    content, and reports argument and API failures as ``isError`` results
    prefixed with ``failure``. Any other exception propagates.
    """
    def decorator(func: Callable[[dict[str, Any]], Awaitable[Any]]) -> ToolHandler:
        @functools.wraps(func)
        async def handler(arguments: dict[str, Any]) -> dict[str, Any]:
            try:
                args = parse_arguments(input_fields, arguments)
                return text_result(await func(args))
            except (ToolArgumentError, SmartsheetAPIError) as e:
                logger.warning("Tool call failed", tool=func.__name__, error=str(e))
                return error_result(f"{failure}: {e}")
        return handler
    return decorator
