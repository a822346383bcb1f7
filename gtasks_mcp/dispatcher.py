"""
Request dispatch for tool invocations.

Maps a tool name and its argument mapping to one aggregator or gateway call
and shapes the outcome into a ResponseEnvelope. Any failure leaves as an
McpError carrying the operation's context.
"""

import logging
from typing import Optional, Dict, Any, Mapping, Callable, Awaitable
from urllib.parse import quote

from .context import ServerContext
from .errors import UnknownOperationError, translate_error
from .models import (
    ResourcePayload,
    ResponseEnvelope,
    Task,
    TaskList,
    task_uri,
    tasklist_uri,
)
from .params import (
    ClearTasksParams,
    CreateTaskListParams,
    CreateTaskParams,
    ListTaskListsParams,
    MoveTaskParams,
    SearchTasksParams,
    TaskIdParams,
    TaskListIdParams,
    TaskScopeParams,
    UpdateTaskListParams,
    UpdateTaskParams,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], Awaitable[ResponseEnvelope]]

# Human-readable context used in error messages
OPERATION_CONTEXT = {
    "tasklist.list": "listing task lists",
    "tasklist.get": "getting task list",
    "tasklist.create": "creating task list",
    "tasklist.update": "updating task list",
    "tasklist.delete": "deleting task list",
    "task.list": "listing tasks",
    "task.search": "searching tasks",
    "task.get": "getting task",
    "task.create": "creating task",
    "task.update": "updating task",
    "task.delete": "deleting task",
    "task.move": "moving task",
    "task.clear": "clearing completed tasks",
}


class RequestDispatcher:
    """Routes tool calls to the Google Tasks gateway"""

    def __init__(self, context: ServerContext):
        self.gateway = context.gateway
        self.aggregator = context.aggregator
        self._handlers: Dict[str, Handler] = {
            "tasklist.list": self.list_tasklists,
            "tasklist.get": self.get_tasklist,
            "tasklist.create": self.create_tasklist,
            "tasklist.update": self.update_tasklist,
            "tasklist.delete": self.delete_tasklist,
            "task.list": self.list_tasks,
            "task.search": self.search_tasks,
            "task.get": self.get_task,
            "task.create": self.create_task,
            "task.update": self.update_task,
            "task.delete": self.delete_task,
            "task.move": self.move_task,
            "task.clear": self.clear_tasks,
        }

    @property
    def operations(self):
        return list(self._handlers)

    async def dispatch(self, operation: str, arguments: Optional[Mapping[str, Any]] = None) -> ResponseEnvelope:
        context = OPERATION_CONTEXT.get(operation, operation)
        handler = self._handlers.get(operation)
        try:
            if handler is None:
                raise UnknownOperationError(f"Unknown tool: {operation}")
            logger.debug(f"Dispatching {operation}")
            return await handler(dict(arguments or {}))
        except Exception as e:
            error = translate_error(e, context)
            logger.error(f"Error executing {operation} tool: {error.error.message}")
            if error is e:
                raise
            raise error from e

    # --- Task List Operations ---

    async def list_tasklists(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = ListTaskListsParams.model_validate(args)
        response = await self.gateway.list_tasklists(max_results=params.max_results)
        task_lists = [TaskList.model_validate(tl) for tl in response.get('items') or []]
        return ResponseEnvelope(
            summary_text=f"Found {len(task_lists)} task lists",
            payload=ResourcePayload(
                uri=tasklist_uri("list-results"),
                data={
                    'count': len(task_lists),
                    'taskLists': [tl.to_payload() for tl in task_lists],
                },
            ),
        )

    async def get_tasklist(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = TaskListIdParams.model_validate(args)
        task_list = TaskList.model_validate(await self.gateway.get_tasklist(params.id))
        return ResponseEnvelope(
            summary_text=f"Task list: {task_list.title}",
            payload=ResourcePayload(uri=tasklist_uri(params.id), data=task_list.to_payload()),
        )

    async def create_tasklist(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = CreateTaskListParams.model_validate(args)
        task_list = TaskList.model_validate(await self.gateway.insert_tasklist({'title': params.title}))
        return ResponseEnvelope(
            summary_text=f"Task list created: {task_list.title}",
            payload=ResourcePayload(uri=tasklist_uri(task_list.id), data=task_list.to_payload()),
        )

    async def update_tasklist(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = UpdateTaskListParams.model_validate(args)
        result = await self.gateway.update_tasklist(params.id, {'id': params.id, 'title': params.title})
        task_list = TaskList.model_validate(result)
        return ResponseEnvelope(
            summary_text=f"Task list updated: {task_list.title}",
            payload=ResourcePayload(uri=tasklist_uri(params.id), data=task_list.to_payload()),
        )

    async def delete_tasklist(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = TaskListIdParams.model_validate(args)
        await self.gateway.delete_tasklist(params.id)
        return ResponseEnvelope(summary_text=f"Task list {params.id} deleted successfully")

    # --- Task Operations ---

    async def list_tasks(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = TaskScopeParams.model_validate(args)
        tasks = await self.aggregator.list_task_items(params.task_list_id)
        list_info = f"in list {params.task_list_id}" if params.task_list_id else "across all lists"
        uri = task_uri(f"{params.task_list_id}/tasks") if params.task_list_id else task_uri("all-tasks")
        return ResponseEnvelope(
            summary_text=f"Found {len(tasks)} tasks {list_info}",
            payload=ResourcePayload(
                uri=uri,
                data={
                    'count': len(tasks),
                    'taskListId': params.task_list_id,
                    'tasks': [t.to_payload() for t in tasks],
                },
            ),
        )

    async def search_tasks(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = SearchTasksParams.model_validate(args)
        tasks = await self.aggregator.list_task_items(params.task_list_id)
        matches = [t for t in tasks if t.matches(params.query)]
        list_info = f"in list {params.task_list_id}" if params.task_list_id else "across all lists"
        return ResponseEnvelope(
            summary_text=f'Found {len(matches)} tasks matching "{params.query}" {list_info}',
            payload=ResourcePayload(
                uri=task_uri(f"search?q={quote(params.query, safe='')}"),
                data={
                    'query': params.query,
                    'count': len(matches),
                    'taskListId': params.task_list_id,
                    'tasks': [t.to_payload() for t in matches],
                },
            ),
        )

    async def get_task(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = TaskIdParams.model_validate(args)
        task = Task.model_validate(await self.gateway.get_task(params.id, tasklist_id=params.task_list_id))
        return ResponseEnvelope(
            summary_text=f"Task: {task.title}",
            payload=ResourcePayload(uri=task_uri(params.id), data=task.to_payload()),
        )

    async def create_task(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = CreateTaskParams.model_validate(args)
        # parent is also a query parameter on insert; the body field alone is ignored upstream
        result = await self.gateway.insert_task(params.body(), tasklist_id=params.task_list_id,
                                                parent=params.parent)
        task = Task.model_validate(result)
        return ResponseEnvelope(
            summary_text=f"Task created: {task.title}",
            payload=ResourcePayload(uri=task_uri(task.id), data=task.to_payload()),
        )

    async def update_task(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = UpdateTaskParams.model_validate(args)
        result = await self.gateway.patch_task(params.id, params.patch_body(), tasklist_id=params.task_list_id)
        task = Task.model_validate(result)
        return ResponseEnvelope(
            summary_text=f"Task updated: {task.title}",
            payload=ResourcePayload(uri=task_uri(params.id), data=task.to_payload()),
        )

    async def delete_task(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = TaskIdParams.model_validate(args)
        await self.gateway.delete_task(params.id, tasklist_id=params.task_list_id)
        return ResponseEnvelope(summary_text=f"Task {params.id} deleted from list {params.task_list_id}")

    async def move_task(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = MoveTaskParams.model_validate(args)
        await self.gateway.move_task(params.id, tasklist_id=params.task_list_id,
                                     parent=params.parent, previous=params.previous)
        return ResponseEnvelope(summary_text=f"Task {params.id} moved successfully")

    async def clear_tasks(self, args: Mapping[str, Any]) -> ResponseEnvelope:
        params = ClearTasksParams.model_validate(args)
        await self.gateway.clear_tasks(params.task_list_id)
        return ResponseEnvelope(summary_text=f"Tasks from tasklist {params.task_list_id} cleared")
