"""
Thin async façade over the Google Tasks v1 API.

googleapiclient is synchronous, so every request is executed in a worker
thread. When an HTTP factory is supplied, each request gets its own
authorized transport so concurrent calls never share an httplib2.Http.
"""

import asyncio
import logging
from typing import Optional, Dict, Any, Callable

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import MAX_TASK_RESULTS, MAX_TASKLIST_RESULTS, DEFAULT_TASK_LIST

logger = logging.getLogger(__name__)


def build_tasks_service(oauth_client):
    """Build the discovery-based tasks v1 service"""
    return build('tasks', 'v1', credentials=oauth_client.google_credentials, cache_discovery=False)


class TasksGateway:
    """Client for interacting with Google Tasks API"""

    def __init__(self, service, http_factory: Optional[Callable[[], Any]] = None):
        self.service = service
        self._http_factory = http_factory

    async def _execute(self, request) -> Any:
        if self._http_factory is not None:
            return await asyncio.to_thread(request.execute, http=self._http_factory())
        return await asyncio.to_thread(request.execute)

    # --- Task List Operations ---

    async def list_tasklists(self, max_results: int = MAX_TASKLIST_RESULTS,
                             page_token: Optional[str] = None) -> Dict[str, Any]:
        """List task lists"""
        params: Dict[str, Any] = {'maxResults': min(max_results, MAX_TASKLIST_RESULTS)}
        if page_token:
            params['pageToken'] = page_token
        try:
            return await self._execute(self.service.tasklists().list(**params))
        except HttpError as e:
            logger.error(f"Error listing task lists: {e}")
            raise

    async def get_tasklist(self, tasklist_id: str) -> Dict[str, Any]:
        """Get a task list"""
        try:
            return await self._execute(self.service.tasklists().get(tasklist=tasklist_id))
        except HttpError as e:
            logger.error(f"Error getting task list {tasklist_id}: {e}")
            raise

    async def insert_tasklist(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new task list"""
        try:
            return await self._execute(self.service.tasklists().insert(body=body))
        except HttpError as e:
            logger.error(f"Error creating task list: {e}")
            raise

    async def update_tasklist(self, tasklist_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Update a task list"""
        try:
            return await self._execute(self.service.tasklists().update(tasklist=tasklist_id, body=body))
        except HttpError as e:
            logger.error(f"Error updating task list {tasklist_id}: {e}")
            raise

    async def delete_tasklist(self, tasklist_id: str) -> None:
        """Delete a task list"""
        try:
            await self._execute(self.service.tasklists().delete(tasklist=tasklist_id))
        except HttpError as e:
            logger.error(f"Error deleting task list {tasklist_id}: {e}")
            raise

    # --- Task Operations ---

    async def list_tasks(self, tasklist_id: str = DEFAULT_TASK_LIST, max_results: int = MAX_TASK_RESULTS,
                         page_token: Optional[str] = None) -> Dict[str, Any]:
        """List tasks in a task list"""
        params: Dict[str, Any] = {
            'tasklist': tasklist_id,
            'maxResults': min(max_results, MAX_TASK_RESULTS),
        }
        if page_token:
            params['pageToken'] = page_token
        try:
            return await self._execute(self.service.tasks().list(**params))
        except HttpError as e:
            logger.error(f"Error listing tasks in {tasklist_id}: {e}")
            raise

    async def get_task(self, task_id: str, tasklist_id: str = DEFAULT_TASK_LIST) -> Dict[str, Any]:
        """Get a task"""
        try:
            return await self._execute(self.service.tasks().get(tasklist=tasklist_id, task=task_id))
        except HttpError as e:
            logger.error(f"Error getting task {task_id}: {e}")
            raise

    async def insert_task(self, body: Dict[str, Any], tasklist_id: str = DEFAULT_TASK_LIST,
                          parent: Optional[str] = None, previous: Optional[str] = None) -> Dict[str, Any]:
        """Create a new task"""
        params: Dict[str, Any] = {'tasklist': tasklist_id, 'body': body}
        if parent:
            params['parent'] = parent
        if previous:
            params['previous'] = previous
        try:
            return await self._execute(self.service.tasks().insert(**params))
        except HttpError as e:
            logger.error(f"Error creating task: {e}")
            raise

    async def update_task(self, task_id: str, body: Dict[str, Any],
                          tasklist_id: str = DEFAULT_TASK_LIST) -> Dict[str, Any]:
        """Replace a task"""
        try:
            return await self._execute(
                self.service.tasks().update(tasklist=tasklist_id, task=task_id, body=body)
            )
        except HttpError as e:
            logger.error(f"Error updating task {task_id}: {e}")
            raise

    async def patch_task(self, task_id: str, body: Dict[str, Any],
                         tasklist_id: str = DEFAULT_TASK_LIST) -> Dict[str, Any]:
        """Partially update a task"""
        try:
            return await self._execute(
                self.service.tasks().patch(tasklist=tasklist_id, task=task_id, body=body)
            )
        except HttpError as e:
            logger.error(f"Error patching task {task_id}: {e}")
            raise

    async def delete_task(self, task_id: str, tasklist_id: str = DEFAULT_TASK_LIST) -> None:
        """Delete a task"""
        try:
            await self._execute(self.service.tasks().delete(tasklist=tasklist_id, task=task_id))
        except HttpError as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            raise

    async def clear_tasks(self, tasklist_id: str = DEFAULT_TASK_LIST) -> None:
        """Clear all completed tasks from a list"""
        try:
            await self._execute(self.service.tasks().clear(tasklist=tasklist_id))
        except HttpError as e:
            logger.error(f"Error clearing completed tasks in {tasklist_id}: {e}")
            raise

    async def move_task(self, task_id: str, tasklist_id: str = DEFAULT_TASK_LIST,
                        parent: Optional[str] = None, previous: Optional[str] = None) -> Dict[str, Any]:
        """Move a task to a new position"""
        params: Dict[str, Any] = {'tasklist': tasklist_id, 'task': task_id}
        if parent:
            params['parent'] = parent
        if previous:
            params['previous'] = previous
        try:
            return await self._execute(self.service.tasks().move(**params))
        except HttpError as e:
            logger.error(f"Error moving task {task_id}: {e}")
            raise
