"""Workspace tools."""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

GET_WORKSPACE_FIELDS = {
    "workspaceId": FieldSchema(description="The ID of the workspace"),
}

CREATE_WORKSPACE_FIELDS = {
    "workspaceName": FieldSchema(description="The name of the new workspace"),
}


def register_workspace_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register workspace tools."""

    @api_tool("Failed to get workspaces", {})
    async def get_workspaces(args: dict[str, Any]) -> Any:
        return await api.list_workspaces()

    @api_tool("Failed to get workspace", GET_WORKSPACE_FIELDS)
    async def get_workspace(args: dict[str, Any]) -> Any:
        return await api.get_workspace(args["workspaceId"])

    @api_tool("Failed to create workspace", CREATE_WORKSPACE_FIELDS)
    async def create_workspace(args: dict[str, Any]) -> Any:
        return await api.create_workspace(args["workspaceName"])

    registrar.tool(
        "get_workspaces",
        "Lists all workspaces the user can access",
        {},
        get_workspaces,
    )
    registrar.tool(
        "get_workspace",
        "Retrieves a workspace with its sheets, folders and reports",
        GET_WORKSPACE_FIELDS,
        get_workspace,
    )
    registrar.tool(
        "create_workspace",
        "Creates a new workspace",
        CREATE_WORKSPACE_FIELDS,
        create_workspace,
    )
