"""
Readable MCP resources.

    gtasklists:///                        all task lists (JSON)
    gtasklists:///{tasklist_id}           one task list (text)
    gtasks:///                            all tasks across lists (JSON)
    gtasks:///default                     tasks of the default list (JSON)
    gtasks:///{task_id}                   one task, searched across lists (text)
    gtasks:///{tasklist_id}/tasks/{id}    one task in a named list (text)

Listing resources also yields one gtasklists:///{id} entry per task list
and one gtasks:///{id} entry per task.
"""

import json
import logging
import re
from typing import Tuple, List

from fastmcp.resources import Resource
from mcp.types import INVALID_REQUEST

from .config import DEFAULT_TASK_LIST, MAX_TASKLIST_RESULTS
from .context import ServerContext
from .errors import mcp_error, translate_error
from .models import TASK_SCHEME, TASKLIST_SCHEME, JSON_MIME_TYPE, Task, TaskList, task_uri, tasklist_uri

logger = logging.getLogger(__name__)

TEXT_MIME_TYPE = "text/plain"

_LIST_TASK_RE = re.compile(r"^(?P<tasklist_id>[^/]+)/tasks/(?P<task_id>[^/]+)$")


def format_tasklist_details(task_list: TaskList) -> str:
    return "\n".join([
        f"Title: {task_list.title}",
        f"ID: {task_list.id or 'Unknown'}",
        f"Updated: {task_list.updated or 'Unknown'}",
        f"ETag: {task_list.etag or 'Unknown'}",
        f"Self Link: {task_list.self_link or 'Unknown'}",
    ])


def format_task_details(task: Task) -> str:
    return "\n".join([
        f"Title: {task.title}",
        f"Status: {task.status.value}",
        f"Due: {task.due or 'Not set'}",
        f"Notes: {task.notes or 'No notes'}",
        f"Hidden: {task.hidden}",
        f"Parent: {task.parent or 'None'}",
        f"Deleted?: {task.deleted}",
        f"Completed Date: {task.completed or 'Not completed'}",
        f"Position: {task.position or 'Unknown'}",
        f"Updated: {task.updated or 'Unknown'}",
    ])


class ResourceReader:
    """Resolves gtasklists:/// and gtasks:/// URIs"""

    def __init__(self, context: ServerContext):
        self.gateway = context.gateway
        self.aggregator = context.aggregator

    async def read(self, uri: str) -> Tuple[str, str]:
        """Return (mime_type, text) for a resource URI"""
        try:
            if uri.startswith(TASKLIST_SCHEME):
                return await self._read_tasklists(uri[len(TASKLIST_SCHEME):])
            if uri.startswith(TASK_SCHEME):
                return await self._read_tasks(uri[len(TASK_SCHEME):])
            raise mcp_error(INVALID_REQUEST, f"Unsupported resource URI: {uri}")
        except Exception as e:
            error = translate_error(e, f"reading resource {uri}")
            logger.error(f"Error reading resource: {error.error.message}")
            if error is e:
                raise
            raise error from e

    async def read_text(self, uri: str) -> str:
        return (await self.read(uri))[1]

    async def list_resources(self) -> List[Resource]:
        """One text resource per task list, then one per task across all lists"""
        try:
            response = await self.gateway.list_tasklists(max_results=MAX_TASKLIST_RESULTS)
            task_lists = [TaskList.model_validate(tl) for tl in response.get('items') or []]
            tasks = await self.aggregator.list_task_items()
        except Exception as e:
            error = translate_error(e, "listing resources")
            logger.error(f"Error listing resources: {error.error.message}")
            if error is e:
                raise
            raise error from e

        resources = [
            Resource(
                uri=tasklist_uri(tl.id),
                name=tl.title,
                description=f"Task list - Updated: {tl.updated or 'Unknown'}",
                mime_type=TEXT_MIME_TYPE,
            )
            for tl in task_lists if tl.id
        ]
        resources.extend(
            Resource(
                uri=task_uri(task.id),
                name=task.title,
                description=task.notes or "No description",
                mime_type=TEXT_MIME_TYPE,
            )
            for task in tasks if task.id
        )
        return resources

    async def _read_tasklists(self, path: str) -> Tuple[str, str]:
        if not path:
            response = await self.gateway.list_tasklists(max_results=MAX_TASKLIST_RESULTS)
            task_lists = [TaskList.model_validate(tl) for tl in response.get('items') or []]
            return JSON_MIME_TYPE, json.dumps([tl.to_payload() for tl in task_lists], indent=2)

        task_list = TaskList.model_validate(await self.gateway.get_tasklist(path))
        return TEXT_MIME_TYPE, format_tasklist_details(task_list)

    async def _read_tasks(self, path: str) -> Tuple[str, str]:
        if not path:
            tasks = await self.aggregator.list_task_items()
            return JSON_MIME_TYPE, json.dumps([t.to_payload() for t in tasks], indent=2)

        if path == "default":
            tasks = await self.aggregator.list_task_items(DEFAULT_TASK_LIST)
            return JSON_MIME_TYPE, json.dumps([t.to_payload() for t in tasks], indent=2)

        match = _LIST_TASK_RE.match(path)
        if match:
            raw = await self.gateway.get_task(match.group('task_id'), tasklist_id=match.group('tasklist_id'))
            return TEXT_MIME_TYPE, format_task_details(Task.model_validate(raw))

        found = await self.aggregator.find_task(path)
        if found is None:
            raise mcp_error(INVALID_REQUEST, f"Task '{path}' not found in any task list")
        _, raw = found
        return TEXT_MIME_TYPE, format_task_details(Task.model_validate(raw))
