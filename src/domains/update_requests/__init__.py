"""Update request tools - asking collaborators to update rows by email."""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

CREATE_UPDATE_REQUEST_FIELDS = {
    "sheetId": FieldSchema(description="The ID of the sheet"),
    "rowIds": FieldSchema(
        type="array",
        items={"type": ["string", "integer"]},
        description="IDs of the rows to include in the request",
    ),
    "sendTo": FieldSchema(
        type="array",
        items={"type": "string"},
        description="Email addresses of the recipients",
    ),
    "columnIds": FieldSchema(
        type="array",
        items={"type": ["string", "integer"]},
        description="IDs of the columns to include; all columns when omitted",
        required=False,
    ),
    "subject": FieldSchema(description="Email subject", required=False),
    "message": FieldSchema(description="Email body", required=False),
    "ccMe": FieldSchema(type="boolean", description="Send a copy to the requester", required=False),
    "includeAttachments": FieldSchema(
        type="boolean", description="Include row attachments", required=False
    ),
    "includeDiscussions": FieldSchema(
        type="boolean", description="Include row discussions", required=False
    ),
}

OPTIONAL_KEYS = ("columnIds", "subject", "message", "ccMe", "includeAttachments", "includeDiscussions")


def build_update_request(args: dict[str, Any]) -> dict[str, Any]:
    """Build the Smartsheet update request body from tool arguments."""
    body: dict[str, Any] = {
        "rowIds": args["rowIds"],
        "sendTo": [{"email": email} for email in args["sendTo"]],
    }
    for key in OPTIONAL_KEYS:
        if key in args:
            body[key] = args[key]
    return body


def register_update_request_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register update request tools."""

    @api_tool("Failed to create update request", CREATE_UPDATE_REQUEST_FIELDS)
    async def create_update_request(args: dict[str, Any]) -> Any:
        return await api.create_update_request(args["sheetId"], build_update_request(args))

    registrar.tool(
        "create_update_request",
        "Creates an update request asking recipients to update rows of a sheet",
        CREATE_UPDATE_REQUEST_FIELDS,
        create_update_request,
    )
