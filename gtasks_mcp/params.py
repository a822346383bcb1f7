"""
Validated argument models for each tool operation.

Tool arguments arrive as a loose mapping using the protocol's camelCase
names. Each operation parses them into one of these models before any
network call; empty strings count as absent.
"""

from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import DEFAULT_TASK_LIST, MAX_TASKLIST_RESULTS
from .models import TaskStatus


class OperationParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @model_validator(mode='before')
    @classmethod
    def _drop_empty(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data


# --- Task List Models ---

class ListTaskListsParams(OperationParams):
    """Arguments for tasklist.list"""
    max_results: int = Field(default=MAX_TASKLIST_RESULTS, alias="maxResults",
                             description="Maximum number of task lists to return", ge=1, le=MAX_TASKLIST_RESULTS)


class TaskListIdParams(OperationParams):
    """Arguments for tasklist.get and tasklist.delete"""
    id: str = Field(..., description="Task list ID", min_length=1)


class CreateTaskListParams(OperationParams):
    """Arguments for tasklist.create"""
    title: str = Field(..., description="Title of the task list", min_length=1)


class UpdateTaskListParams(OperationParams):
    """Arguments for tasklist.update"""
    id: str = Field(..., description="Task list ID", min_length=1)
    title: str = Field(..., description="New title for the task list", min_length=1)


# --- Task Models ---

class TaskScopeParams(OperationParams):
    """Arguments for task.list; no scope means every task list"""
    task_list_id: Optional[str] = Field(None, alias="taskListId", description="Optional task list ID")


class SearchTasksParams(TaskScopeParams):
    """Arguments for task.search"""
    query: str = Field(..., description="Search query", min_length=1)


class ClearTasksParams(OperationParams):
    """Arguments for task.clear"""
    task_list_id: str = Field(default=DEFAULT_TASK_LIST, alias="taskListId")


class TaskIdParams(OperationParams):
    """Arguments for task.get and task.delete"""
    task_list_id: str = Field(default=DEFAULT_TASK_LIST, alias="taskListId")
    id: str = Field(..., description="Task ID", min_length=1)


class CreateTaskParams(OperationParams):
    """Arguments for task.create"""
    task_list_id: str = Field(default=DEFAULT_TASK_LIST, alias="taskListId")
    title: str = Field(..., description="Task title", min_length=1)
    notes: Optional[str] = Field(None, description="Task notes")
    due: Optional[str] = Field(None, description="Due date in RFC 3339 format")
    status: Optional[TaskStatus] = Field(None, description="Task status")
    parent: Optional[str] = Field(None, description="Parent task ID, for creating subtasks")

    def body(self) -> Dict[str, Any]:
        return self.model_dump(include={'title', 'notes', 'due', 'status', 'parent'},
                               exclude_none=True, mode='json')


class UpdateTaskParams(OperationParams):
    """Arguments for task.update"""
    task_list_id: str = Field(default=DEFAULT_TASK_LIST, alias="taskListId")
    id: str = Field(..., description="Task ID", min_length=1)
    title: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[TaskStatus] = None
    due: Optional[str] = None
    parent: Optional[str] = None

    def patch_body(self) -> Dict[str, Any]:
        return self.model_dump(include={'title', 'notes', 'status', 'due', 'parent'},
                               exclude_none=True, mode='json')


class MoveTaskParams(OperationParams):
    """Arguments for task.move"""
    task_list_id: str = Field(default=DEFAULT_TASK_LIST, alias="taskListId")
    id: str = Field(..., description="Task ID", min_length=1)
    parent: Optional[str] = Field(None, description="New parent task ID")
    previous: Optional[str] = Field(None, description="Previous sibling task ID")
