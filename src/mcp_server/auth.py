"""Shared-secret authentication for tool execution.

Only ``tools/call`` is gated. ``initialize`` and ``tools/list`` stay open
so clients can discover the catalog without credentials.
"""

import hmac
from typing import Optional

from pydantic import BaseModel

from shared.logging import get_logger

logger = get_logger(__name__)

GATED_METHOD = "tools/call"

AUTH_REQUIRED_MESSAGE = "Authentication required for tool execution"
AUTH_INVALID_MESSAGE = "Invalid authentication for tool execution"


class AuthConfig(BaseModel):
    """Authentication configuration."""
    require_auth: bool = True
    secret_key: str = ""

    @property
    def effectively_disabled(self) -> bool:
        """True when auth is required but no secret is configured."""
        return self.require_auth and not self.secret_key


def check_tool_call_auth(
    require_auth: bool,
    secret_key: str,
    method: Optional[str],
    provided_key: Optional[str],
    client: str = "unknown",
) -> tuple[bool, Optional[str]]:
    """
    Decide whether a JSON-RPC request may proceed.

    Args:
        require_auth: Whether authentication is enabled
        secret_key: Configured shared secret; empty disables the check
        method: JSON-RPC method of the request
        provided_key: Value of the x-secret-key header, if any
        client: Client address, for logging only

    Returns:
        Tuple of (is_allowed, error_message)
    """
    if method != GATED_METHOD:
        return True, None

    if not require_auth:
        return True, None

    if not secret_key:
        logger.warning("SECRET_KEY not configured but REQUIRE_AUTH is true; tool execution is unauthenticated")
        return True, None

    if not provided_key:
        logger.warning("Missing x-secret-key header for tools/call", client=client)
        return False, AUTH_REQUIRED_MESSAGE

    if not hmac.compare_digest(provided_key.encode("utf-8"), secret_key.encode("utf-8")):
        logger.warning("Invalid x-secret-key for tools/call", client=client)
        return False, AUTH_INVALID_MESSAGE

    return True, None
