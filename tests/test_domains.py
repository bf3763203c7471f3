"""Tests for the Smartsheet tool domains."""

import json

import pytest
from unittest.mock import AsyncMock

from domains.base import Registrar
from smartsheet_api import SmartsheetAPI, SmartsheetAPIError


class CollectingRegistrar(Registrar):
    """Keeps descriptors so tests can call handlers directly."""

    def __init__(self) -> None:
        super().__init__()
        self.descriptors = {}

    def accept(self, descriptor) -> None:
        self.descriptors[descriptor.name] = descriptor


def payload(result):
    """Decode the JSON text content of a tool result."""
    return json.loads(result["content"][0]["text"])


@pytest.fixture
def api():
    return AsyncMock(spec=SmartsheetAPI)


class TestRegisterAllTools:
    """Tests for the full registration sweep."""

    def test_tool_names_unique_and_ordered(self, api):
        from domains import register_all_tools

        registrar = CollectingRegistrar()
        register_all_tools(registrar, api, allow_delete_tools=True)

        names = list(registrar.descriptors)
        assert names[0] == "get_discussions_by_sheet_id"
        assert names[-1] == "create_workspace"
        assert "delete_rows" in names

    def test_delete_rows_gated(self, api):
        from domains import register_all_tools

        registrar = CollectingRegistrar()
        register_all_tools(registrar, api, allow_delete_tools=False)

        assert "delete_rows" not in registrar.descriptors
        assert "update_rows" in registrar.descriptors

    def test_sweep_makes_no_api_calls(self, api):
        from domains import register_all_tools

        register_all_tools(CollectingRegistrar(), api, allow_delete_tools=True)

        assert api.mock_calls == []


class TestSheetTools:
    """Tests for sheet tools."""

    def setup_method(self):
        self.api = AsyncMock(spec=SmartsheetAPI)
        self.registrar = CollectingRegistrar()

        from domains.sheets import register_sheet_tools
        register_sheet_tools(self.registrar, self.api, allow_delete_tools=True)

    async def call(self, name, arguments):
        return await self.registrar.descriptors[name].handler(arguments)

    @pytest.mark.asyncio
    async def test_get_sheet(self):
        self.api.get_sheet.return_value = {"id": 1, "name": "Budget"}

        result = await self.call("get_sheet", {"sheetId": "1", "pageSize": 50})

        assert "isError" not in result
        assert payload(result) == {"id": 1, "name": "Budget"}
        self.api.get_sheet.assert_awaited_once_with("1", include=None, exclude=None, page_size=50, page=None)

    @pytest.mark.asyncio
    async def test_get_sheet_api_error(self):
        self.api.get_sheet.side_effect = SmartsheetAPIError("Not Found", status_code=404, error_code=1006)

        result = await self.call("get_sheet", {"sheetId": "1"})

        assert result["isError"] is True
        assert result["content"][0]["text"] == "Failed to get sheet: Not Found"

    @pytest.mark.asyncio
    async def test_invalid_arguments_skip_api(self):
        result = await self.call("get_sheet", {"pageSize": 0})

        assert result["isError"] is True
        assert "Invalid arguments" in result["content"][0]["text"]
        self.api.get_sheet.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_sheet_by_url(self):
        self.api.get_sheet.return_value = {"id": 2}

        await self.call("get_sheet_by_url", {"url": "https://app.smartsheet.com/sheets/AbC123?view=grid"})

        self.api.get_sheet.assert_awaited_once_with("AbC123", include=None, exclude=None)

    @pytest.mark.asyncio
    async def test_get_sheet_by_bad_url(self):
        result = await self.call("get_sheet_by_url", {"url": "https://example.com/"})

        assert result["isError"] is True
        self.api.get_sheet.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_rows(self):
        rows = [{"id": 10, "cells": [{"columnId": 5, "value": "Done"}]}]
        self.api.update_rows.return_value = {"message": "SUCCESS", "result": rows}

        result = await self.call("update_rows", {"sheetId": "1", "rows": rows})

        assert payload(result)["message"] == "SUCCESS"
        self.api.update_rows.assert_awaited_once_with("1", rows)

    @pytest.mark.asyncio
    async def test_delete_rows(self):
        self.api.delete_rows.return_value = {"message": "SUCCESS"}

        await self.call("delete_rows", {"sheetId": "1", "rowIds": [10, "11"]})

        self.api.delete_rows.assert_awaited_once_with("1", [10, "11"], ignore_rows_not_found=False)

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self):
        self.api.get_sheet_version.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await self.call("get_sheet_version", {"sheetId": "1"})


class TestSearchTools:
    """Tests for search tools."""

    @pytest.mark.asyncio
    async def test_search_sheets_filters_object_type(self, api):
        from domains.search import register_search_tools

        api.search.return_value = {
            "totalCount": 3,
            "results": [
                {"objectType": "sheet", "text": "Budget"},
                {"objectType": "folder", "text": "Budget folder"},
                {"objectType": "row", "text": "Budget row"},
            ],
        }
        registrar = CollectingRegistrar()
        register_search_tools(registrar, api)

        result = await registrar.descriptors["search_sheets"].handler({"query": "Budget"})

        assert payload(result) == {"totalCount": 1, "results": [{"objectType": "sheet", "text": "Budget"}]}


class TestUpdateRequestTools:
    """Tests for update request tools."""

    def test_build_update_request(self):
        from domains.update_requests import build_update_request

        body = build_update_request({
            "sheetId": "1",
            "rowIds": [1, 2],
            "sendTo": ["a@example.com"],
            "subject": "Please update",
        })

        assert body == {
            "rowIds": [1, 2],
            "sendTo": [{"email": "a@example.com"}],
            "subject": "Please update",
        }

    @pytest.mark.asyncio
    async def test_create_update_request(self, api):
        from domains.update_requests import register_update_request_tools

        api.create_update_request.return_value = {"message": "SUCCESS"}
        registrar = CollectingRegistrar()
        register_update_request_tools(registrar, api)

        await registrar.descriptors["create_update_request"].handler(
            {"sheetId": "1", "rowIds": [1], "sendTo": ["a@example.com"]}
        )

        api.create_update_request.assert_awaited_once_with(
            "1", {"rowIds": [1], "sendTo": [{"email": "a@example.com"}]}
        )


class TestUserAndWorkspaceTools:
    """Tests for tools without arguments."""

    @pytest.mark.asyncio
    async def test_get_current_user(self, api):
        from domains.users import register_user_tools

        api.get_current_user.return_value = {"email": "me@example.com"}
        registrar = CollectingRegistrar()
        register_user_tools(registrar, api)

        result = await registrar.descriptors["get_current_user"].handler({})

        assert payload(result) == {"email": "me@example.com"}

    @pytest.mark.asyncio
    async def test_create_workspace(self, api):
        from domains.workspaces import register_workspace_tools

        api.create_workspace.return_value = {"result": {"id": 3}}
        registrar = CollectingRegistrar()
        register_workspace_tools(registrar, api)

        await registrar.descriptors["create_workspace"].handler({"workspaceName": "Ops"})

        api.create_workspace.assert_awaited_once_with("Ops")


class TestDiscussionTools:
    """Tests for discussion tools."""

    @pytest.mark.asyncio
    async def test_create_row_discussion(self, api):
        from domains.discussions import register_discussion_tools

        api.create_row_discussion.return_value = {"result": {"id": 4}}
        registrar = CollectingRegistrar()
        register_discussion_tools(registrar, api)

        await registrar.descriptors["create_row_discussion"].handler(
            {"sheetId": "1", "rowId": "2", "commentText": "Looks good"}
        )

        api.create_row_discussion.assert_awaited_once_with("1", "2", "Looks good")
