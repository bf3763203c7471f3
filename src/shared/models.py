"""Core data models for the Smartsheet MCP Gateway.

Tool descriptors, their discovery projection, credential identity and
audit records shared across the gateway.
"""

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.config import DEFAULT_SMARTSHEET_ENDPOINT

# Handlers receive the raw "arguments" object of a tools/call request
ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]

FieldType = Literal["string", "integer", "number", "boolean", "array", "object"]


class FieldSchema(BaseModel):
    """Declared type of a single tool argument."""
    type: FieldType = "string"
    description: Optional[str] = None
    required: bool = True
    enum: Optional[list[Any]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    items: Optional[dict[str, Any]] = None
    default: Any = None

    def to_json_schema(self) -> dict[str, Any]:
        """Render this field as a full JSON Schema property."""
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = self.enum
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.type == "array" and self.items is not None:
            schema["items"] = self.items
        if self.default is not None:
            schema["default"] = self.default
        return schema


class ToolDescriptor(BaseModel):
    """
    A tool as announced by a domain module to a registrar.

    Descriptors are rebuilt on every registration sweep and never outlive
    the request that produced them.
    """
    name: str
    description: str
    input_fields: dict[str, FieldSchema] = Field(default_factory=dict)
    handler: ToolHandler = Field(exclude=True)


class ToolDefinition(BaseModel):
    """Discovery-facing projection of a tool."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with MCP field names."""
        return self.model_dump(by_alias=True)


class CredentialKey(BaseModel):
    """
    Identity of one backing-client: an API key and the endpoint it targets.

    A missing endpoint resolves to the public Smartsheet API, so requests with
    and without an explicit default endpoint share one client.
    """
    model_config = ConfigDict(frozen=True)

    api_key: str = Field(repr=False)
    endpoint: str = DEFAULT_SMARTSHEET_ENDPOINT

    @classmethod
    def from_headers(cls, api_key: str, endpoint: Optional[str] = None) -> "CredentialKey":
        return cls(api_key=api_key, endpoint=endpoint or DEFAULT_SMARTSHEET_ENDPOINT)

    @property
    def fingerprint(self) -> str:
        """Short, non-reversible identifier safe for logs."""
        return hashlib.sha256(self.api_key.encode("utf-8")).hexdigest()[:12]


class AuditStatus(str, Enum):
    """Outcome of a tools/call execution."""
    SUCCESS = "success"
    TOOL_ERROR = "tool_error"
    NOT_FOUND = "not_found"
    ERROR = "error"


class AuditEntry(BaseModel):
    """
    Audit log entry for tool executions.

    Captures credential identity, tool, arguments, timestamp and outcome.
    """
    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    tool_name: str
    credential: str = Field(..., description="Credential fingerprint, never the key")
    endpoint: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    status: AuditStatus
    error: Optional[str] = None
    execution_time_ms: float = 0

    request_id: Optional[str] = None
