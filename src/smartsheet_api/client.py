"""Async client for the Smartsheet REST API.

One instance is bound to one access token and endpoint. The underlying
HTTP client is created lazily, so constructing an instance without
credentials (as tool discovery does) never touches the network.
"""

from typing import Any, Optional

import httpx
from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential,
)

from shared.config import DEFAULT_SMARTSHEET_ENDPOINT
from shared.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "smartsheet-mcp-gateway/0.1.0"

# Smartsheet answers these with a retryable error body
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# The only status retried for non-GET requests
RATE_LIMITED = 429


class SmartsheetAPIError(Exception):
    """A Smartsheet API call failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
        ref_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.ref_id = ref_id

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SmartsheetAPIError":
        """Build an error from a Smartsheet error body (errorCode, message, refId)."""
        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {}

        return cls(
            body.get("message") or f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
            error_code=body.get("errorCode"),
            ref_id=body.get("refId"),
        )


class SmartsheetConnectionError(SmartsheetAPIError):
    """The Smartsheet API could not be reached."""


def _should_retry(retry_state: RetryCallState) -> bool:
    """Retry GETs on rate limits, server and transport errors; others on 429 only."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    if not isinstance(error, SmartsheetAPIError):
        return False

    method = retry_state.kwargs.get("method") or retry_state.args[1]
    if method.upper() != "GET":
        return error.status_code == RATE_LIMITED

    return isinstance(error, SmartsheetConnectionError) or error.retryable


def _comma_list(values: Optional[list[Any]]) -> Optional[str]:
    return ",".join(str(v) for v in values) if values else None


class SmartsheetAPI:
    """
    Client for the Smartsheet API.

    Covers sheets, rows, folders, workspaces, users, search, discussions
    and update requests. All methods return decoded JSON.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_SMARTSHEET_ENDPOINT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            access_token: Smartsheet API access token
            base_url: API base URL (regional endpoints differ)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = (base_url or DEFAULT_SMARTSHEET_ENDPOINT).rstrip("/")
        self.timeout = timeout
        self._access_token = access_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SmartsheetAPI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    @retry(
        retry=_should_retry,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True
    )
    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request and decode the JSON response.

        Raises:
            SmartsheetConnectionError: If the API is unreachable
            SmartsheetAPIError: If the API answers with a non-2xx status
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug("Smartsheet request", method=method, path=path)

        try:
            client = await self._get_client()
            response = await client.request(method, path, params=params or None, json=json)
        except httpx.TransportError as e:
            raise SmartsheetConnectionError(f"Cannot connect to Smartsheet API: {e}")

        if response.is_error:
            error = SmartsheetAPIError.from_response(response)
            logger.warning(
                "Smartsheet request failed",
                method=method,
                path=path,
                status_code=error.status_code,
                error_code=error.error_code,
            )
            raise error

        if not response.content:
            return {}
        return response.json()

    # Sheets

    async def get_sheet(
        self,
        sheet_id: str,
        include: Optional[str] = None,
        exclude: Optional[str] = None,
        page_size: Optional[int] = None,
        page: Optional[int] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/sheets/{sheet_id}",
            params={"include": include, "exclude": exclude, "pageSize": page_size, "page": page},
        )

    async def get_sheet_version(self, sheet_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/sheets/{sheet_id}/version")

    async def get_cell_history(
        self,
        sheet_id: str,
        row_id: str,
        column_id: str,
        include: Optional[str] = None,
        page_size: Optional[int] = None,
        page: Optional[int] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/sheets/{sheet_id}/rows/{row_id}/columns/{column_id}/history",
            params={"include": include, "pageSize": page_size, "page": page},
        )

    async def add_rows(self, sheet_id: str, rows: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._request("POST", f"/sheets/{sheet_id}/rows", json=rows)

    async def update_rows(self, sheet_id: str, rows: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._request("PUT", f"/sheets/{sheet_id}/rows", json=rows)

    async def delete_rows(
        self,
        sheet_id: str,
        row_ids: list[Any],
        ignore_rows_not_found: bool = False,
    ) -> dict[str, Any]:
        return await self._request(
            "DELETE",
            f"/sheets/{sheet_id}/rows",
            params={
                "ids": _comma_list(row_ids),
                "ignoreRowsNotFound": str(ignore_rows_not_found).lower(),
            },
        )

    async def copy_sheet(
        self,
        sheet_id: str,
        destination_id: str,
        destination_type: str = "folder",
        new_name: Optional[str] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "destinationType": destination_type,
            "destinationId": destination_id,
        }
        if new_name:
            payload["newName"] = new_name
        return await self._request("POST", f"/sheets/{sheet_id}/copy", json=payload)

    async def create_sheet(
        self,
        name: str,
        columns: list[dict[str, Any]],
        folder_id: Optional[str] = None,
    ) -> dict[str, Any]:
        path = f"/folders/{folder_id}/sheets" if folder_id else "/sheets"
        return await self._request("POST", path, json={"name": name, "columns": columns})

    # Folders

    async def get_folder(self, folder_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/folders/{folder_id}")

    async def create_folder(self, parent_folder_id: str, name: str) -> dict[str, Any]:
        return await self._request(
            "POST", f"/folders/{parent_folder_id}/folders", json={"name": name}
        )

    # Workspaces

    async def list_workspaces(self) -> dict[str, Any]:
        return await self._request("GET", "/workspaces", params={"includeAll": "true"})

    async def get_workspace(self, workspace_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/workspaces/{workspace_id}")

    async def create_workspace(self, name: str) -> dict[str, Any]:
        return await self._request("POST", "/workspaces", json={"name": name})

    # Users

    async def get_current_user(self) -> dict[str, Any]:
        return await self._request("GET", "/users/me")

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/users/{user_id}")

    async def list_users(self, email: Optional[str] = None) -> dict[str, Any]:
        return await self._request(
            "GET", "/users", params={"email": email, "includeAll": "true"}
        )

    # Search

    async def search(self, query: str, scopes: Optional[list[str]] = None) -> dict[str, Any]:
        return await self._request(
            "GET", "/search", params={"query": query, "scopes": _comma_list(scopes)}
        )

    async def search_sheet(self, sheet_id: str, query: str) -> dict[str, Any]:
        return await self._request("GET", f"/search/sheets/{sheet_id}", params={"query": query})

    # Discussions

    async def get_sheet_discussions(
        self,
        sheet_id: str,
        include: Optional[str] = None,
        page_size: Optional[int] = None,
        page: Optional[int] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/sheets/{sheet_id}/discussions",
            params={"include": include, "pageSize": page_size, "page": page},
        )

    async def get_row_discussions(
        self,
        sheet_id: str,
        row_id: str,
        include: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/sheets/{sheet_id}/rows/{row_id}/discussions",
            params={"include": include},
        )

    async def create_sheet_discussion(self, sheet_id: str, comment_text: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/sheets/{sheet_id}/discussions",
            json={"comment": {"text": comment_text}},
        )

    async def create_row_discussion(
        self, sheet_id: str, row_id: str, comment_text: str
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/sheets/{sheet_id}/rows/{row_id}/discussions",
            json={"comment": {"text": comment_text}},
        )

    # Update requests

    async def create_update_request(
        self, sheet_id: str, update_request: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._request(
            "POST", f"/sheets/{sheet_id}/updaterequests", json=update_request
        )
