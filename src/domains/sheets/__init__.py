"""Sheet tools - reading sheets and cells, writing and deleting rows.

``delete_rows`` is only registered when the caller allows delete tools.
"""

import re
from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, ToolArgumentError, api_tool
from smartsheet_api import SmartsheetAPI

# https://app.smartsheet.com/sheets/<directIdToken>?view=grid
SHEET_URL_PATTERN = re.compile(r"/sheets/([^/?#]+)")

ROW_ITEMS = {"type": "object"}

GET_SHEET_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet to retrieve"),
    "include": FieldSchema(
        description="Comma-separated list of elements to include (e.g., 'format,formulas')",
        required=False,
    ),
    "exclude": FieldSchema(
        description="Comma-separated list of elements to exclude (e.g., 'cellLinks,nonexistentCells')",
        required=False,
    ),
    "pageSize": FieldSchema(
        type="integer", description="Number of rows per page", required=False, minimum=1
    ),
    "page": FieldSchema(type="integer", description="Page number to return", required=False, minimum=1),
}

GET_SHEET_BY_URL_FIELDS = {
    "url": FieldSchema(description="The URL of the sheet to retrieve"),
    "include": GET_SHEET_FIELDS["include"],
    "exclude": GET_SHEET_FIELDS["exclude"],
}

GET_SHEET_VERSION_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
}

GET_CELL_HISTORY_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rowId": FieldSchema(description="The ID of the row"),
    "columnId": FieldSchema(description="The ID of the column"),
    "include": FieldSchema(
        description="Optional parameter to include additional information (e.g., 'columnType')",
        required=False,
    ),
    "pageSize": GET_SHEET_FIELDS["pageSize"],
    "page": GET_SHEET_FIELDS["page"],
}

UPDATE_ROWS_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rows": FieldSchema(
        type="array",
        items=ROW_ITEMS,
        description="Array of row objects to update, each with an id and cells (columnId, value)",
    ),
}

ADD_ROWS_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rows": FieldSchema(
        type="array",
        items=ROW_ITEMS,
        description="Array of row objects to add, each with cells (columnId, value) and optional placement",
    ),
}

DELETE_ROWS_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rowIds": FieldSchema(type="array", items={"type": ["string", "integer"]}, description="Array of row IDs to delete"),
    "ignoreRowsNotFound": FieldSchema(
        type="boolean",
        description="If true, don't throw an error if rows are not found",
        required=False,
    ),
}

COPY_SHEET_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet to copy"),
    "destinationId": FieldSchema(description="The ID of the destination folder or workspace"),
    "destinationType": FieldSchema(
        description="Type of the destination container",
        enum=["folder", "workspace", "home"],
        required=False,
    ),
    "newName": FieldSchema(description="Name of the copy", required=False),
}

CREATE_SHEET_FIELDS = {
    "name": FieldSchema(description="Name of the new sheet"),
    "columns": FieldSchema(
        type="array",
        items={"type": "object"},
        description="Array of column definitions (title, type, primary)",
    ),
    "folderId": FieldSchema(description="The ID of the folder to create the sheet in", required=False),
}


def sheet_id_from_url(url: str) -> str:
    """Extract the direct ID token from a sheet URL."""
    match = SHEET_URL_PATTERN.search(url)
    if not match:
        raise ToolArgumentError(f"Not a Smartsheet sheet URL: {url}")
    return match.group(1)


def register_sheet_tools(
    registrar: Registrar, api: SmartsheetAPI, allow_delete_tools: bool = False
) -> None:
    """Register sheet and row tools."""

    @api_tool("Failed to get sheet", GET_SHEET_FIELDS)
    async def get_sheet(args: dict[str, Any]) -> Any:
        return await api.get_sheet(
            args["sheetId"],
            include=args.get("include"),
            exclude=args.get("exclude"),
            page_size=args.get("pageSize"),
            page=args.get("page"),
        )

    @api_tool("Failed to get sheet by URL", GET_SHEET_BY_URL_FIELDS)
    async def get_sheet_by_url(args: dict[str, Any]) -> Any:
        return await api.get_sheet(
            sheet_id_from_url(args["url"]),
            include=args.get("include"),
            exclude=args.get("exclude"),
        )

    @api_tool("Failed to get sheet version", GET_SHEET_VERSION_FIELDS)
    async def get_sheet_version(args: dict[str, Any]) -> Any:
        return await api.get_sheet_version(args["sheetId"])

    @api_tool("Failed to get cell history", GET_CELL_HISTORY_FIELDS)
    async def get_cell_history(args: dict[str, Any]) -> Any:
        return await api.get_cell_history(
            args["sheetId"],
            args["rowId"],
            args["columnId"],
            include=args.get("include"),
            page_size=args.get("pageSize"),
            page=args.get("page"),
        )

    @api_tool("Failed to update rows", UPDATE_ROWS_FIELDS)
    async def update_rows(args: dict[str, Any]) -> Any:
        return await api.update_rows(args["sheetId"], args["rows"])

    @api_tool("Failed to add rows", ADD_ROWS_FIELDS)
    async def add_rows(args: dict[str, Any]) -> Any:
        return await api.add_rows(args["sheetId"], args["rows"])

    @api_tool("Failed to copy sheet", COPY_SHEET_FIELDS)
    async def copy_sheet(args: dict[str, Any]) -> Any:
        return await api.copy_sheet(
            args["sheetId"],
            args["destinationId"],
            destination_type=args.get("destinationType", "folder"),
            new_name=args.get("newName"),
        )

    @api_tool("Failed to create sheet", CREATE_SHEET_FIELDS)
    async def create_sheet(args: dict[str, Any]) -> Any:
        return await api.create_sheet(args["name"], args["columns"], folder_id=args.get("folderId"))

    registrar.tool(
        "get_sheet",
        "Retrieves the current state of a sheet, including rows, columns, and cells",
        GET_SHEET_FIELDS,
        get_sheet,
    )
    registrar.tool(
        "get_sheet_by_url",
        "Retrieves the current state of a sheet from its Smartsheet URL",
        GET_SHEET_BY_URL_FIELDS,
        get_sheet_by_url,
    )
    registrar.tool(
        "get_sheet_version",
        "Gets the latest version number of a sheet",
        GET_SHEET_VERSION_FIELDS,
        get_sheet_version,
    )
    registrar.tool(
        "get_cell_history",
        "Retrieves the history of changes for a specific cell",
        GET_CELL_HISTORY_FIELDS,
        get_cell_history,
    )
    registrar.tool(
        "update_rows",
        "Updates rows in a sheet, including cell values, formatting, and formulae",
        UPDATE_ROWS_FIELDS,
        update_rows,
    )
    registrar.tool(
        "add_rows",
        "Adds new rows to a sheet",
        ADD_ROWS_FIELDS,
        add_rows,
    )
    registrar.tool(
        "copy_sheet",
        "Creates a copy of the specified sheet in a folder or workspace",
        COPY_SHEET_FIELDS,
        copy_sheet,
    )
    registrar.tool(
        "create_sheet",
        "Creates a new sheet, optionally inside a folder",
        CREATE_SHEET_FIELDS,
        create_sheet,
    )

    if allow_delete_tools:
        @api_tool("Failed to delete rows", DELETE_ROWS_FIELDS)
        async def delete_rows(args: dict[str, Any]) -> Any:
            return await api.delete_rows(
                args["sheetId"],
                args["rowIds"],
                ignore_rows_not_found=args.get("ignoreRowsNotFound", False),
            )

        registrar.tool(
            "delete_rows",
            "Deletes rows from a sheet",
            DELETE_ROWS_FIELDS,
            delete_rows,
        )
