"""Audit logging for tool executions.

Every tools/call that reaches the execution engine is recorded with the
credential fingerprint, tool, arguments (sensitive keys redacted), outcome
and timing. Entries are buffered and appended to a JSON-lines file.
"""

import asyncio
import uuid
from pathlib import Path
from typing import Any, Optional

import aiofiles

from shared.logging import get_logger
from shared.models import AuditEntry, AuditStatus, CredentialKey

logger = get_logger(__name__)


class AuditLogger:
    """
    Audit logger for tool executions.

    Disabled loggers accept entries and drop them, so callers never need
    to check whether auditing is on.
    """

    # Argument names that should be redacted in audit logs
    SENSITIVE_PARAMS = {"password", "token", "secret", "api_key", "apikey", "credential", "accesstoken"}

    def __init__(
        self,
        log_path: str = "logs/audit.log",
        enabled: bool = True,
        buffer_size: int = 100
    ) -> None:
        self.log_path = Path(log_path)
        self.enabled = enabled
        self.buffer_size = buffer_size
        self._buffer: list[AuditEntry] = []
        self._lock = asyncio.Lock()

        if self.enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _redact_sensitive(self, params: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive arguments from audit logs."""
        redacted = {}
        for key, value in params.items():
            if key.lower() in self.SENSITIVE_PARAMS:
                redacted[key] = "[REDACTED]"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive(value)
            else:
                redacted[key] = value
        return redacted

    def create_entry(
        self,
        tool_name: str,
        credential: CredentialKey,
        arguments: dict[str, Any],
        status: AuditStatus,
        error: Optional[str] = None,
        execution_time_ms: float = 0,
        request_id: Any = None,
    ) -> AuditEntry:
        """Create an audit entry from tool execution data."""
        return AuditEntry(
            id=str(uuid.uuid4()),
            tool_name=str(tool_name),
            credential=credential.fingerprint,
            endpoint=credential.endpoint,
            arguments=self._redact_sensitive(arguments) if isinstance(arguments, dict) else {},
            status=status,
            error=error,
            execution_time_ms=execution_time_ms,
            request_id=None if request_id is None else str(request_id),
        )

    async def log(self, entry: AuditEntry) -> None:
        """Log a tool execution."""
        if not self.enabled:
            return

        logger.info(
            "Tool executed",
            audit_id=entry.id,
            tool=entry.tool_name,
            credential=entry.credential,
            status=entry.status.value,
            execution_time_ms=round(entry.execution_time_ms, 2)
        )

        async with self._lock:
            self._buffer.append(entry)

            if len(self._buffer) >= self.buffer_size:
                await self._flush()

    async def _flush(self) -> None:
        """Flush buffered entries to file."""
        if not self._buffer:
            return

        entries_to_write = self._buffer.copy()
        self._buffer.clear()

        try:
            async with aiofiles.open(self.log_path, "a") as f:
                for entry in entries_to_write:
                    await f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Failed to write audit log", error=str(e))
            # Keep at most one buffer of the newest entries for the next flush
            dropped = len(entries_to_write) - self.buffer_size
            if dropped > 0:
                logger.warning("Dropping unwritten audit entries", dropped=dropped)
                entries_to_write = entries_to_write[dropped:]
            self._buffer.extend(entries_to_write)

    async def flush(self) -> None:
        """Public method to flush audit buffer."""
        async with self._lock:
            await self._flush()
