"""Shared fixtures for the Google Tasks MCP test suite."""

import json
from unittest.mock import AsyncMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gtasks_mcp.context import ServerContext
from gtasks_mcp.dispatcher import RequestDispatcher
from gtasks_mcp.gateway import TasksGateway


def make_http_error(status: int, message: str = "Upstream failure") -> HttpError:
    resp = httplib2.Response({'status': status})
    content = json.dumps({'error': {'code': status, 'message': message}}).encode('utf-8')
    return HttpError(resp, content)


@pytest.fixture
def http_error():
    return make_http_error


@pytest.fixture
def gateway():
    return AsyncMock(spec=TasksGateway)


@pytest.fixture
def context(gateway):
    return ServerContext(gateway=gateway)


@pytest.fixture
def dispatcher(context):
    return RequestDispatcher(context)


@pytest.fixture
def two_lists(gateway, http_error):
    """list1 holds t1 (needsAction) and t2 (completed); list2 always fails"""
    gateway.list_tasklists.return_value = {
        'items': [
            {'id': 'list1', 'title': 'Task List 1'},
            {'id': 'list2', 'title': 'Task List 2'},
        ]
    }

    async def list_tasks(tasklist_id, max_results=100, page_token=None):
        if tasklist_id == 'list1':
            return {'items': [
                {'id': 't1', 'title': 'Task 1', 'status': 'needsAction'},
                {'id': 't2', 'title': 'Task 2', 'status': 'completed'},
            ]}
        raise http_error(500, "Backend Error")

    gateway.list_tasks.side_effect = list_tasks
    return gateway
