#!/usr/bin/env python3
"""
Tests for the Google Tasks MCP request dispatcher and server wiring.

The Google Tasks gateway is replaced with an AsyncMock, so no network access
or credentials are needed.
"""

import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND

from gtasks_mcp.dispatcher import RequestDispatcher
from gtasks_mcp.server import create_server


def payload_of(envelope):
    return envelope.payload.data


class TestTaskListOperations:

    @pytest.mark.asyncio
    async def test_list_tasklists(self, dispatcher, gateway):
        gateway.list_tasklists.return_value = {'items': [
            {'id': 'l1', 'title': 'Work', 'etag': 'e1'},
            {'id': 'l2'},
        ]}

        envelope = await dispatcher.dispatch("tasklist.list", {})

        gateway.list_tasklists.assert_awaited_once_with(max_results=100)
        assert envelope.summary_text == "Found 2 task lists"
        assert envelope.payload.uri == "gtasklists:///list-results"
        data = payload_of(envelope)
        assert data['count'] == 2
        assert data['taskLists'][1] == {
            'id': 'l2', 'title': 'Untitled', 'updated': None, 'selfLink': None, 'etag': None,
        }

    @pytest.mark.asyncio
    async def test_get_tasklist_requires_id(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("tasklist.get", {})
        assert exc_info.value.error.code == INVALID_PARAMS
        assert gateway.method_calls == []

    @pytest.mark.asyncio
    async def test_create_tasklist(self, dispatcher, gateway):
        gateway.insert_tasklist.return_value = {'id': 'new-list', 'title': 'Groceries'}

        envelope = await dispatcher.dispatch("tasklist.create", {'title': 'Groceries'})

        gateway.insert_tasklist.assert_awaited_once_with({'title': 'Groceries'})
        assert envelope.summary_text == "Task list created: Groceries"
        assert envelope.payload.uri == "gtasklists:///new-list"

    @pytest.mark.asyncio
    async def test_update_tasklist_requires_title(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("tasklist.update", {'id': 'l1', 'title': ''})
        assert exc_info.value.error.code == INVALID_PARAMS
        gateway.update_tasklist.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_tasklist(self, dispatcher, gateway):
        gateway.update_tasklist.return_value = {'id': 'l1', 'title': 'Renamed'}

        envelope = await dispatcher.dispatch("tasklist.update", {'id': 'l1', 'title': 'Renamed'})

        gateway.update_tasklist.assert_awaited_once_with('l1', {'id': 'l1', 'title': 'Renamed'})
        assert envelope.summary_text == "Task list updated: Renamed"
        assert envelope.payload.uri == "gtasklists:///l1"

    @pytest.mark.asyncio
    async def test_delete_tasklist_has_no_payload(self, dispatcher, gateway):
        envelope = await dispatcher.dispatch("tasklist.delete", {'id': 'l1'})

        gateway.delete_tasklist.assert_awaited_once_with('l1')
        assert envelope.summary_text == "Task list l1 deleted successfully"
        assert envelope.payload is None


class TestTaskListing:

    @pytest.mark.asyncio
    async def test_list_scoped_to_one_list(self, dispatcher, gateway):
        gateway.list_tasks.return_value = {'items': [
            {'id': 'task1', 'title': 'Task 1', 'status': 'needsAction'},
            {'id': 'task2', 'title': 'Task 2', 'status': 'completed'},
        ]}

        envelope = await dispatcher.dispatch("task.list", {'taskListId': 'list1'})

        gateway.list_tasks.assert_awaited_once_with('list1', max_results=100)
        gateway.list_tasklists.assert_not_called()
        assert "Found 2 tasks" in envelope.summary_text
        assert envelope.summary_text == "Found 2 tasks in list list1"
        assert envelope.payload.uri == "gtasks:///list1/tasks"
        assert payload_of(envelope)['count'] == 2
        assert payload_of(envelope)['taskListId'] == 'list1'

    @pytest.mark.asyncio
    async def test_list_across_lists_tolerates_failed_list(self, dispatcher, two_lists):
        envelope = await dispatcher.dispatch("task.list", {})

        data = payload_of(envelope)
        assert [t['id'] for t in data['tasks']] == ['t1', 't2']
        assert [t['status'] for t in data['tasks']] == ['needsAction', 'completed']
        assert envelope.summary_text == "Found 2 tasks across all lists"
        assert envelope.payload.uri == "gtasks:///all-tasks"
        assert data['taskListId'] is None

    @pytest.mark.asyncio
    async def test_scoped_list_failure_yields_empty_result(self, dispatcher, gateway, http_error):
        gateway.list_tasks.side_effect = http_error(503)

        envelope = await dispatcher.dispatch("task.list", {'taskListId': 'list9'})

        assert envelope.summary_text == "Found 0 tasks in list list9"
        assert payload_of(envelope)['tasks'] == []

    @pytest.mark.asyncio
    async def test_enumeration_failure_is_internal_error(self, dispatcher, gateway, http_error):
        gateway.list_tasklists.side_effect = http_error(404)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.list", {})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert "listing tasks" in exc_info.value.error.message


class TestTaskSearch:

    @pytest.mark.asyncio
    async def test_search_matches_title_or_notes_case_insensitively(self, dispatcher, gateway):
        gateway.list_tasks.return_value = {'items': [
            {'id': 'a', 'title': 'Buy MILK'},
            {'id': 'b', 'title': 'Call mom', 'notes': 'about the milkshake recipe'},
            {'id': 'c', 'title': 'Write report', 'notes': 'quarterly'},
            {'id': 'd'},
        ]}

        envelope = await dispatcher.dispatch("task.search", {'query': 'milk', 'taskListId': 'l1'})

        data = payload_of(envelope)
        assert [t['id'] for t in data['tasks']] == ['a', 'b']
        assert data['query'] == 'milk'
        assert data['count'] == 2
        assert envelope.summary_text == 'Found 2 tasks matching "milk" in list l1'

    @pytest.mark.asyncio
    async def test_search_across_lists(self, dispatcher, two_lists):
        envelope = await dispatcher.dispatch("task.search", {'query': 'task 2'})

        assert [t['id'] for t in payload_of(envelope)['tasks']] == ['t2']
        assert envelope.summary_text.endswith("across all lists")

    @pytest.mark.asyncio
    async def test_search_uri_encodes_query(self, dispatcher, gateway):
        gateway.list_tasks.return_value = {'items': []}

        envelope = await dispatcher.dispatch("task.search", {'query': 'a b&c', 'taskListId': 'l1'})

        assert envelope.payload.uri == "gtasks:///search?q=a%20b%26c"

    @pytest.mark.asyncio
    async def test_empty_query_rejected_before_network(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.search", {'query': ''})

        assert exc_info.value.error.code == INVALID_PARAMS
        assert "searching tasks" in exc_info.value.error.message
        assert gateway.method_calls == []


class TestTaskMutations:

    @pytest.mark.asyncio
    async def test_create_task(self, dispatcher, gateway):
        gateway.insert_task.return_value = {'id': 'newtask', 'title': 'New Task'}

        envelope = await dispatcher.dispatch("task.create", {
            'title': 'New Task',
            'notes': 'Task notes',
            'taskListId': 'list1',
        })

        gateway.insert_task.assert_awaited_once_with(
            {'title': 'New Task', 'notes': 'Task notes'}, tasklist_id='list1', parent=None,
        )
        assert "Task created" in envelope.summary_text
        assert "New Task" in envelope.summary_text
        assert envelope.payload.uri == "gtasks:///newtask"
        assert payload_of(envelope)['notes'] is None

    @pytest.mark.asyncio
    async def test_create_task_defaults_list_and_passes_optional_fields(self, dispatcher, gateway):
        gateway.insert_task.return_value = {'id': 'sub', 'title': 'Sub'}

        await dispatcher.dispatch("task.create", {
            'title': 'Sub', 'due': '2025-01-15T00:00:00.000Z', 'status': 'completed', 'parent': 'p1',
        })

        gateway.insert_task.assert_awaited_once_with(
            {'title': 'Sub', 'due': '2025-01-15T00:00:00.000Z', 'status': 'completed', 'parent': 'p1'},
            tasklist_id='@default', parent='p1',
        )

    @pytest.mark.asyncio
    async def test_create_task_without_title_makes_no_calls(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.create", {'notes': 'orphan'})

        assert exc_info.value.error.code == INVALID_PARAMS
        assert gateway.method_calls == []

    @pytest.mark.asyncio
    async def test_create_task_rejects_unknown_status(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.create", {'title': 'x', 'status': 'done'})
        assert exc_info.value.error.code == INVALID_PARAMS
        gateway.insert_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_task_sends_only_given_fields(self, dispatcher, gateway):
        gateway.patch_task.return_value = {'id': 't1', 'title': 'Old title', 'status': 'completed'}

        envelope = await dispatcher.dispatch("task.update", {
            'id': 't1', 'taskListId': 'l1', 'status': 'completed', 'notes': '',
        })

        gateway.patch_task.assert_awaited_once_with('t1', {'status': 'completed'}, tasklist_id='l1')
        assert envelope.summary_text == "Task updated: Old title"
        assert envelope.payload.uri == "gtasks:///t1"

    @pytest.mark.asyncio
    async def test_update_task_requires_id(self, dispatcher, gateway):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.update", {'title': 'x'})
        assert exc_info.value.error.code == INVALID_PARAMS
        assert gateway.method_calls == []

    @pytest.mark.asyncio
    async def test_get_task_not_found_is_invalid_request(self, dispatcher, gateway, http_error):
        gateway.get_task.side_effect = http_error(404, "Task not found")

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.get", {'id': 'missing'})

        gateway.get_task.assert_awaited_once_with('missing', tasklist_id='@default')
        assert exc_info.value.error.code == INVALID_REQUEST
        assert "Task not found" in exc_info.value.error.message

    @pytest.mark.asyncio
    async def test_get_task_normalizes_fields(self, dispatcher, gateway):
        gateway.get_task.return_value = {'id': 't1', 'title': 'Plain'}

        envelope = await dispatcher.dispatch("task.get", {'id': 't1', 'taskListId': 'l1'})

        assert envelope.summary_text == "Task: Plain"
        assert payload_of(envelope) == {
            'id': 't1', 'title': 'Plain', 'status': 'needsAction', 'notes': None, 'due': None,
            'completed': None, 'parent': None, 'position': None, 'updated': None,
            'hidden': False, 'deleted': False, 'etag': None, 'selfLink': None, 'links': [],
        }

    @pytest.mark.asyncio
    async def test_delete_task(self, dispatcher, gateway):
        envelope = await dispatcher.dispatch("task.delete", {'id': 't1', 'taskListId': 'l1'})

        gateway.delete_task.assert_awaited_once_with('t1', tasklist_id='l1')
        assert envelope.summary_text == "Task t1 deleted from list l1"
        assert envelope.payload is None

    @pytest.mark.asyncio
    async def test_move_task_passes_only_given_positions(self, dispatcher, gateway):
        gateway.move_task.return_value = {'id': 't1'}

        envelope = await dispatcher.dispatch("task.move", {'id': 't1', 'previous': 't0'})

        gateway.move_task.assert_awaited_once_with('t1', tasklist_id='@default', parent=None, previous='t0')
        assert envelope.summary_text == "Task t1 moved successfully"
        assert envelope.payload is None

    @pytest.mark.asyncio
    async def test_clear_defaults_to_default_list(self, dispatcher, gateway):
        envelope = await dispatcher.dispatch("task.clear", {})

        gateway.clear_tasks.assert_awaited_once_with('@default')
        assert envelope.summary_text == "Tasks from tasklist @default cleared"
        assert envelope.payload is None

    @pytest.mark.asyncio
    async def test_authentication_failure(self, dispatcher, gateway, http_error):
        gateway.delete_task.side_effect = http_error(401, "Invalid Credentials")

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.delete", {'id': 't1'})

        assert exc_info.value.error.code == INVALID_REQUEST
        assert exc_info.value.error.message.startswith("Authentication error during deleting task")
        assert "Invalid Credentials" in exc_info.value.error.message

    @pytest.mark.asyncio
    async def test_unknown_operation(self, dispatcher):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("task.archive", {'id': 't1'})
        assert exc_info.value.error.code == METHOD_NOT_FOUND


class TestResponseEnvelope:

    @pytest.mark.asyncio
    async def test_content_blocks(self, dispatcher, gateway):
        gateway.get_task.return_value = {'id': 't1', 'title': 'Plain'}

        envelope = await dispatcher.dispatch("task.get", {'id': 't1'})
        text_block, resource_block = envelope.to_content()

        assert text_block.type == "text"
        assert text_block.text == "Task: Plain"
        assert resource_block.type == "resource"
        assert resource_block.resource.mimeType == "application/json"
        assert json.loads(resource_block.resource.text)['id'] == 't1'

    @pytest.mark.asyncio
    async def test_side_effect_operations_have_summary_only(self, dispatcher):
        envelope = await dispatcher.dispatch("task.clear", {'taskListId': 'l1'})
        assert len(envelope.to_content()) == 1


class TestServer:

    @pytest.mark.asyncio
    async def test_registers_all_tools(self, context):
        mcp = create_server(context)

        async with Client(mcp) as client:
            tools = await client.list_tools()

        assert {tool.name for tool in tools} == {
            "tasklist.list", "tasklist.get", "tasklist.create", "tasklist.update", "tasklist.delete",
            "task.list", "task.get", "task.create", "task.update", "task.delete",
            "task.move", "task.clear", "task.search",
        }
        assert {tool.name for tool in tools} == set(RequestDispatcher(context).operations)

    @pytest.mark.asyncio
    async def test_call_tool_returns_summary_and_resource(self, context, gateway):
        gateway.insert_task.return_value = {'id': 'newtask', 'title': 'New Task'}
        mcp = create_server(context)

        async with Client(mcp) as client:
            result = await client.call_tool("task.create", {'title': 'New Task', 'taskListId': 'list1'})

        assert result.content[0].text == "Task created: New Task"
        assert result.content[1].type == "resource"

    @pytest.mark.asyncio
    async def test_call_tool_reports_validation_failure(self, context, gateway):
        mcp = create_server(context)

        async with Client(mcp) as client:
            with pytest.raises(ToolError):
                await client.call_tool("task.create", {'title': ''})

        gateway.insert_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_tool_error_text_carries_code(self, context, gateway, http_error):
        gateway.get_task.side_effect = http_error(404, "Task not found")
        mcp = create_server(context)

        async with Client(mcp) as client:
            result = await client.call_tool("task.get", {'id': 'x'}, raise_on_error=False)

        assert result.is_error
        assert result.content[0].text == (
            f"Resource not found during getting task: Task not found (error code {INVALID_REQUEST})"
        )

    @pytest.mark.asyncio
    async def test_list_resources_includes_each_task_list_and_task(self, context, two_lists):
        mcp = create_server(context)

        async with Client(mcp) as client:
            resources = await client.list_resources()

        uris = [str(r.uri) for r in resources]
        assert {'gtasklists:///', 'gtasks:///'} <= set(uris)
        assert uris[-4:] == ['gtasklists:///list1', 'gtasklists:///list2', 'gtasks:///t1', 'gtasks:///t2']
        names = {str(r.uri): r.name for r in resources}
        assert names['gtasklists:///list1'] == 'Task List 1'
        assert names['gtasks:///t2'] == 'Task 2'

    @pytest.mark.asyncio
    async def test_read_resource_routes_single_and_compound_task_uris(self, context, gateway):
        gateway.list_tasklists.return_value = {'items': [{'id': 'list1'}]}
        gateway.get_task.return_value = {'id': 't1', 'title': 'Pay rent'}
        mcp = create_server(context)

        async with Client(mcp) as client:
            single = await client.read_resource("gtasks:///t1")
            compound = await client.read_resource("gtasks:///list2/tasks/t1")
            task_lists = await client.read_resource("gtasklists:///")

        assert single[0].text.startswith("Title: Pay rent")
        assert compound[0].text.startswith("Title: Pay rent")
        assert [c.kwargs['tasklist_id'] for c in gateway.get_task.call_args_list] == ['list1', 'list2']
        assert json.loads(task_lists[0].text) == [
            {'id': 'list1', 'title': 'Untitled', 'updated': None, 'selfLink': None, 'etag': None}
        ]
