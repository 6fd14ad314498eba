"""
TASKCHAT - State Sync Coordinator

Owns the in-memory list collection of one session and is the only
component that talks to the persistence collaborator.

Applying a result is two explicit steps:
1. apply(): replace the affected lists in memory (synchronous, always succeeds)
2. the matching store writes, queued in order and drained in the background;
   flush() waits for them and returns a SyncReport with any failures

Failed writes are not rolled back in memory. reload() re-fetches the
authoritative collection and is the recovery path.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from taskchat.engine.reconcile import ReconcileResult
from taskchat.lists.models import TaskList
from taskchat.lists.repository import TaskListRepositoryInterface

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"


class PersistenceError(Exception):
    """A store write failed for one list."""

    def __init__(self, action: str, list_id: str, cause: Exception | str):
        self.action = action
        self.list_id = list_id
        self.cause = cause
        super().__init__(f"Failed to {action} list {list_id}: {cause}")


@dataclass
class SyncReport:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    errors: List[PersistenceError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SyncCoordinator:
    """Authoritative in-memory collection plus ordered write-behind to the store."""

    def __init__(
        self,
        owner_id: str,
        repository: TaskListRepositoryInterface,
        lists: Optional[List[TaskList]] = None,
    ):
        self.owner_id = owner_id
        self.repository = repository
        self._lists: List[TaskList] = list(lists or [])
        self._queue: List[Tuple[str, TaskList]] = []
        self._worker: Optional[asyncio.Task] = None
        self._report = SyncReport()
        # local id -> id the store assigned on create
        self._store_ids: Dict[str, str] = {}

    @property
    def lists(self) -> List[TaskList]:
        return list(self._lists)

    def get(self, list_id: str) -> Optional[TaskList]:
        list_id = self._current_id(list_id)
        for task_list in self._lists:
            if task_list.id == list_id:
                return task_list
        return None

    def apply(self, result: ReconcileResult) -> None:
        """Optimistically apply a reconciliation result and queue its writes."""
        if not result.changed:
            return

        deleted_ids = {self._current_id(task_list.id) for task_list in result.deleted}
        lists = [task_list for task_list in self._lists if task_list.id not in deleted_ids]

        for modified in result.modified:
            current_id = self._current_id(modified.id)
            if current_id != modified.id:
                modified = replace(modified, id=current_id)
            for index, task_list in enumerate(lists):
                if task_list.id == current_id:
                    lists[index] = modified
                    break
            else:
                lists.append(modified)
        lists.extend(result.created)
        self._lists = lists

        self._queue.extend((CREATE, task_list) for task_list in result.created)
        self._queue.extend((UPDATE, task_list) for task_list in result.modified)
        self._queue.extend((DELETE, task_list) for task_list in result.deleted)
        self._start_worker()

    async def flush(self) -> SyncReport:
        """Wait for every queued write and hand back what happened since the last flush."""
        while self._queue or (self._worker is not None and not self._worker.done()):
            self._start_worker()
            await self._worker
        report, self._report = self._report, SyncReport()
        if report.errors:
            logger.warning(f"{len(report.errors)} store write(s) failed for user {self.owner_id}")
        return report

    async def reload(self) -> List[TaskList]:
        """Replace local state wholesale with the store's collection."""
        await self.flush()
        self._lists = await self.repository.list_by_owner(self.owner_id, order_by="created_at")
        self._store_ids.clear()
        logger.info(f"Reloaded {len(self._lists)} list(s) for user {self.owner_id}")
        return self.lists

    def _start_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: writes stay queued until flush()
            return
        self._worker = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._queue:
            action, task_list = self._queue.pop(0)
            try:
                await self._write(action, task_list)
            except PersistenceError as e:
                logger.error(str(e))
                self._report.errors.append(e)
            except Exception as e:
                logger.error(f"Store {action} failed for list {task_list.id}: {e}", exc_info=True)
                self._report.errors.append(PersistenceError(action, task_list.id, e))

    async def _write(self, action: str, task_list: TaskList) -> None:
        list_id = self._current_id(task_list.id)

        if action == CREATE:
            stored = await self.repository.create(task_list)
            if stored.id != task_list.id:
                self._remap(task_list.id, stored.id)
            self._report.created += 1
        elif action == UPDATE:
            document = task_list.to_dict()
            updates = {key: document[key] for key in ("title", "tasks", "category", "order")}
            stored = await self.repository.update(list_id, self.owner_id, updates)
            if stored is None:
                raise PersistenceError(action, list_id, "list not found in store")
            self._report.updated += 1
        else:
            if not await self.repository.delete(list_id, self.owner_id):
                logger.warning(f"List {list_id} was already gone from the store")
            self._report.deleted += 1

    def _current_id(self, list_id: str) -> str:
        return self._store_ids.get(list_id, list_id)

    def _remap(self, local_id: str, store_id: str) -> None:
        logger.debug(f"Store assigned id {store_id} to local list {local_id}")
        self._store_ids[local_id] = store_id
        for index, task_list in enumerate(self._lists):
            if task_list.id == local_id:
                self._lists[index] = replace(task_list, id=store_id)
