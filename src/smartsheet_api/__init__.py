"""Async Smartsheet REST API client used by the domain tools."""

from smartsheet_api.client import (
    SmartsheetAPI,
    SmartsheetAPIError,
    SmartsheetConnectionError,
)

__all__ = ["SmartsheetAPI", "SmartsheetAPIError", "SmartsheetConnectionError"]
