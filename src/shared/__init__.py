"""Shared models, configuration and logging for the Smartsheet MCP Gateway."""

from shared.models import (
    AuditEntry,
    CredentialKey,
    FieldSchema,
    ToolDefinition,
    ToolDescriptor,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "AuditEntry",
    "CredentialKey",
    "FieldSchema",
    "ToolDefinition",
    "ToolDescriptor",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
