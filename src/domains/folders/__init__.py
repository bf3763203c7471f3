"""Folder tools."""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

GET_FOLDER_FIELDS = {
    "folderId": FieldSchema(description="The ID of the folder to retrieve"),
}

CREATE_FOLDER_FIELDS = {
    "folderId": FieldSchema(description="The ID of the parent folder"),
    "folderName": FieldSchema(description="The name of the new folder"),
}


def register_folder_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register folder tools."""

    @api_tool("Failed to get folder", GET_FOLDER_FIELDS)
    async def get_folder(args: dict[str, Any]) -> Any:
        return await api.get_folder(args["folderId"])

    @api_tool("Failed to create folder", CREATE_FOLDER_FIELDS)
    async def create_folder(args: dict[str, Any]) -> Any:
        return await api.create_folder(args["folderId"], args["folderName"])

    registrar.tool(
        "get_folder",
        "Retrieves the contents of a folder: sheets, reports and subfolders",
        GET_FOLDER_FIELDS,
        get_folder,
    )
    registrar.tool(
        "create_folder",
        "Creates a new folder inside an existing folder",
        CREATE_FOLDER_FIELDS,
        create_folder,
    )
