"""Discussion tools - reading and starting comment threads on sheets and rows."""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

SHEET_DISCUSSIONS_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "include": FieldSchema(
        description="Elements to include, e.g. 'attachments,comments'",
        required=False,
    ),
    "pageSize": FieldSchema(type="integer", description="Number of discussions per page", required=False, minimum=1),
    "page": FieldSchema(type="integer", description="Page number to return", required=False, minimum=1),
}

ROW_DISCUSSIONS_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rowId": FieldSchema(description="The ID of the row"),
    "include": SHEET_DISCUSSIONS_FIELDS["include"],
}

CREATE_SHEET_DISCUSSION_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "commentText": FieldSchema(description="Text of the first comment in the discussion"),
}

CREATE_ROW_DISCUSSION_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rowId": FieldSchema(description="The ID of the row"),
    "commentText": FieldSchema(description="Text of the first comment in the discussion"),
}


def register_discussion_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register discussion tools."""

    @api_tool("Failed to get discussions", SHEET_DISCUSSIONS_FIELDS)
    async def get_discussions_by_sheet_id(args: dict[str, Any]) -> Any:
        return await api.get_sheet_discussions(
            args["sheetId"],
            include=args.get("include"),
            page_size=args.get("pageSize"),
            page=args.get("page"),
        )

    @api_tool("Failed to get discussions", ROW_DISCUSSIONS_FIELDS)
    async def get_discussions_by_row_id(args: dict[str, Any]) -> Any:
        return await api.get_row_discussions(args["sheetId"], args["rowId"], include=args.get("include"))

    @api_tool("Failed to create discussion", CREATE_SHEET_DISCUSSION_FIELDS)
    async def create_sheet_discussion(args: dict[str, Any]) -> Any:
        return await api.create_sheet_discussion(args["sheetId"], args["commentText"])

    @api_tool("Failed to create discussion", CREATE_ROW_DISCUSSION_FIELDS)
    async def create_row_discussion(args: dict[str, Any]) -> Any:
        return await api.create_row_discussion(args["sheetId"], args["rowId"], args["commentText"])

    (
        registrar
        .tool(
            "get_discussions_by_sheet_id",
            "Retrieves the discussions for a sheet",
            SHEET_DISCUSSIONS_FIELDS,
            get_discussions_by_sheet_id,
        )
        .tool(
            "get_discussions_by_row_id",
            "Retrieves the discussions for a specific row",
            ROW_DISCUSSIONS_FIELDS,
            get_discussions_by_row_id,
        )
        .tool(
            "create_sheet_discussion",
            "Starts a new discussion on a sheet",
            CREATE_SHEET_DISCUSSION_FIELDS,
            create_sheet_discussion,
        )
        .tool(
            "create_row_discussion",
            "Starts a new discussion on a row",
            CREATE_ROW_DISCUSSION_FIELDS,
            create_row_discussion,
        )
    )
