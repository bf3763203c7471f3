"""User tools."""

from typing import Any

from shared.models import FieldSchema
from domains.base import Registrar, api_tool
from smartsheet_api import SmartsheetAPI

GET_USER_FIELDS = {
    "userId": FieldSchema(description="The ID of the user"),
}

LIST_USERS_FIELDS = {
    "email": FieldSchema(description="Only return the user with this email address", required=False),
}


def register_user_tools(registrar: Registrar, api: SmartsheetAPI) -> None:
    """Register user tools."""

    @api_tool("Failed to get current user", {})
    async def get_current_user(args: dict[str, Any]) -> Any:
        return await api.get_current_user()

    @api_tool("Failed to get user", GET_USER_FIELDS)
    async def get_user(args: dict[str, Any]) -> Any:
        return await api.get_user(args["userId"])

    @api_tool("Failed to list users", LIST_USERS_FIELDS)
    async def list_users(args: dict[str, Any]) -> Any:
        return await api.list_users(email=args.get("email"))

    registrar.tool(
        "get_current_user",
        "Gets the profile of the user who owns the API key",
        {},
        get_current_user,
    )
    registrar.tool(
        "get_user",
        "Gets a user's profile by ID",
        GET_USER_FIELDS,
        get_user,
    )
    registrar.tool(
        "list_users",
        "Lists the users of the organization",
        LIST_USERS_FIELDS,
        list_users,
    )
