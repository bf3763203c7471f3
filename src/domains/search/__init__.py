"""Search tools.

The global search endpoint returns mixed results; the per-type tools
filter them down to one ``objectType``.
"""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

QUERY_FIELDS = {
    "query": FieldSchema(description="Text to search for"),
}

SEARCH_IN_SHEET_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet to search"),
    "query": FieldSchema(description="Text to search for"),
}


def filter_results(response: dict[str, Any], object_type: str) -> dict[str, Any]:
    """Keep only search results of one object type."""
    results = [r for r in response.get("results", []) if r.get("objectType") == object_type]
    return {"totalCount": len(results), "results": results}


def register_search_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register search tools."""

    @api_tool("Failed to search sheets", QUERY_FIELDS)
    async def search_sheets(args: dict[str, Any]) -> Any:
        return filter_results(await api.search(args["query"]), "sheet")

    @api_tool("Failed to search in sheet", SEARCH_IN_SHEET_FIELDS)
    async def search_in_sheet(args: dict[str, Any]) -> Any:
        return await api.search_sheet(args["sheetId"], args["query"])

    @api_tool("Failed to search folders", QUERY_FIELDS)
    async def search_folders(args: dict[str, Any]) -> Any:
        return filter_results(await api.search(args["query"]), "folder")

    @api_tool("Failed to search workspaces", QUERY_FIELDS)
    async def search_workspaces(args: dict[str, Any]) -> Any:
        return filter_results(await api.search(args["query"]), "workspace")

    registrar.tool(
        "search_sheets",
        "Search for sheets by name or content",
        QUERY_FIELDS,
        search_sheets,
    )
    registrar.tool(
        "search_in_sheet",
        "Search for text within a specific sheet",
        SEARCH_IN_SHEET_FIELDS,
        search_in_sheet,
    )
    registrar.tool(
        "search_folders",
        "Search for folders by name",
        QUERY_FIELDS,
        search_folders,
    )
    registrar.tool(
        "search_workspaces",
        "Search for workspaces by name",
        QUERY_FIELDS,
        search_workspaces,
    )
