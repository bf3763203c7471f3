"""Smartsheet tool domains.

Each domain module registers its tools with whatever registrar it is
given. Domains share no state and never call each other.
"""

from typing import Callable

from domains.base import Registrar
from smartsheet_api import SmartsheetAPI

# (registrar, api, allow_delete_tools) -> None
ToolSweep = Callable[[Registrar, SmartsheetAPI, bool], None]


def register_all_tools(
    registrar: Registrar, api: SmartsheetAPI, allow_delete_tools: bool = False
) -> None:
    """
    Register every domain's tools with the given registrar.

    Registration order is stable and defines the order of tools/list.
    """
    from domains.discussions import register_discussion_tools
    from domains.folders import register_folder_tools
    from domains.search import register_search_tools
    from domains.sheets import register_sheet_tools
    from domains.update_requests import register_update_request_tools
    from domains.users import register_user_tools
    from domains.workspaces import register_workspace_tools

    register_discussion_tools(registrar, api)
    register_folder_tools(registrar, api)
    register_search_tools(registrar, api)
    register_sheet_tools(registrar, api, allow_delete_tools)
    register_update_request_tools(registrar, api)
    register_user_tools(registrar, api)
    register_workspace_tools(registrar, api)


__all__ = ["Registrar", "ToolSweep", "register_all_tools"]
