"""
Task aggregation across task lists.

Without a scope, tasks are fetched from every task list concurrently. A list
that fails contributes no tasks and is recorded as failed; it never aborts
its siblings. Results are concatenated in task-list order.

Only the first page of each list is read (MAX_TASK_RESULTS items), and only
the first MAX_TASKLIST_RESULTS lists are seen.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from .config import MAX_TASK_RESULTS, MAX_TASKLIST_RESULTS
from .errors import TaskListEnumerationError
from .models import Task

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"
OUTCOME_FAILED = "failed"


@dataclass
class AggregationResult:
    items: List[Task] = field(default_factory=list)
    outcomes: Dict[str, str] = field(default_factory=dict)

    @property
    def failed_lists(self) -> List[str]:
        return [list_id for list_id, outcome in self.outcomes.items() if outcome == OUTCOME_FAILED]


class TaskAggregator:
    """Collects tasks from one task list or from all of them"""

    def __init__(self, gateway):
        self.gateway = gateway

    async def list_tasks(self, task_list_id: Optional[str] = None) -> AggregationResult:
        if task_list_id:
            list_id, items, error = await self._fetch(task_list_id)
            return AggregationResult(
                items=items,
                outcomes={list_id: OUTCOME_FAILED if error else OUTCOME_OK},
            )

        list_ids = await self._task_list_ids()
        if not list_ids:
            return AggregationResult()

        results: List[Tuple[str, List[Task], Optional[Exception]]] = await asyncio.gather(
            *(self._fetch(list_id) for list_id in list_ids)
        )

        aggregated = AggregationResult()
        for list_id, items, error in results:
            if error is not None:
                aggregated.outcomes[list_id] = OUTCOME_FAILED
                continue
            aggregated.outcomes[list_id] = OUTCOME_OK
            aggregated.items.extend(items)
        return aggregated

    async def list_task_items(self, task_list_id: Optional[str] = None) -> List[Task]:
        return (await self.list_tasks(task_list_id)).items

    async def find_task(self, task_id: str) -> Optional[Tuple[str, Dict[str, Any]]]:
        """Look a task up in each list in turn; returns (task_list_id, raw task)"""
        for list_id in await self._task_list_ids():
            try:
                task = await self.gateway.get_task(task_id, tasklist_id=list_id)
            except Exception as e:
                logger.debug(f"Task {task_id} not in list {list_id}: {e}")
                continue
            return list_id, task
        return None

    async def _task_list_ids(self) -> List[str]:
        try:
            response = await self.gateway.list_tasklists(max_results=MAX_TASKLIST_RESULTS)
        except Exception as e:
            logger.error(f"Error listing task lists: {e}")
            raise TaskListEnumerationError(f"could not list task lists: {e}") from e
        return [tl['id'] for tl in response.get('items') or [] if tl.get('id')]

    async def _fetch(self, list_id: str) -> Tuple[str, List[Task], Optional[Exception]]:
        try:
            response = await self.gateway.list_tasks(list_id, max_results=MAX_TASK_RESULTS)
            items = [Task.model_validate(raw) for raw in response.get('items') or []]
        except Exception as e:
            logger.warning(f"Error fetching tasks for list {list_id}: {e}")
            return list_id, [], e

        if response.get('nextPageToken'):
            logger.warning(f"Task list {list_id} has more than {MAX_TASK_RESULTS} tasks; only the first page is returned")
        return list_id, items, None
