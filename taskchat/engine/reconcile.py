"""
TASKCHAT - Reconciliation Engine

Computes the next state of the targeted list(s) from the current state and
one normalized operation. Functions here never mutate their inputs; they
return fresh TaskList/Task objects for the sync coordinator to apply.

Per kind:
- add: append incoming tasks whose title is not already an active task
- update: merge fields onto every task matched by title, never create
- delete: drop every task whose title is in the deletion set
- deleteList: drop every resolved list
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from taskchat.engine.normalize import normalize_title
from taskchat.engine.normalizer import NormalizedOperation, TaskPatch
from taskchat.engine.resolver import Resolution, TargetKind
from taskchat.lists.enums import OperationKind
from taskchat.lists.models import Task, TaskList

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Lists to create, replace and remove after one operation."""

    created: List[TaskList] = field(default_factory=list)
    modified: List[TaskList] = field(default_factory=list)
    deleted: List[TaskList] = field(default_factory=list)

    @property
    def affected(self) -> List[TaskList]:
        return self.created + self.modified

    @property
    def changed(self) -> bool:
        return bool(self.created or self.modified or self.deleted)

    def extend(self, other: "ReconcileResult") -> None:
        self.created.extend(other.created)
        self.modified.extend(other.modified)
        self.deleted.extend(other.deleted)


def reconcile(
    operation: NormalizedOperation,
    resolution: Resolution,
    owner_id: str,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    now = now or datetime.now(timezone.utc)

    if resolution.kind == TargetKind.MISSING:
        return ReconcileResult()

    if operation.kind == OperationKind.DELETE_LIST:
        logger.info(f"Deleting {len(resolution.lists)} list(s) titled '{operation.title}'")
        return ReconcileResult(deleted=list(resolution.lists))

    if resolution.kind == TargetKind.NEW:
        return ReconcileResult(created=[create_list(owner_id, operation, now)])

    target = resolution.target
    if operation.kind == OperationKind.ADD:
        updated, added = add_tasks(target, operation.new_tasks)
        if operation.operation.category and not target.category:
            updated = replace(updated, category=operation.operation.category)
        if not added and updated.category == target.category:
            logger.info(f"Nothing new to add to '{target.title}'")
            return ReconcileResult()
    elif operation.kind == OperationKind.UPDATE:
        updated = update_tasks(target, operation.patches, now)
        if operation.operation.new_title:
            updated = replace(updated, title=operation.operation.new_title)
        if operation.operation.category:
            updated = replace(updated, category=operation.operation.category)
    else:
        updated = delete_tasks(target, operation.titles_to_delete)

    if updated == target:
        return ReconcileResult()
    return ReconcileResult(modified=[replace(updated, updated_at=now)])


def create_list(owner_id: str, operation: NormalizedOperation, now: Optional[datetime] = None) -> TaskList:
    """New list seeded with the incoming tasks, internal duplicates removed."""
    tasks = _dedupe_against([], operation.new_tasks)
    task_list = TaskList.create(
        owner_id=owner_id,
        title=operation.title.strip(),
        tasks=tasks,
        category=operation.operation.category,
    )
    if now is not None:
        task_list.created_at = now
        task_list.updated_at = now
    logger.info(f"Creating list '{task_list.title}' with {len(tasks)} task(s)")
    return task_list


def add_tasks(task_list: TaskList, new_tasks: List[Task]) -> Tuple[TaskList, List[Task]]:
    """
    Append tasks whose normalized title is not already held by an active
    task. Completed tasks do not block a title from coming back.
    """
    added = _dedupe_against(task_list.tasks, new_tasks)
    skipped = len(new_tasks) - len(added)
    if skipped:
        logger.info(f"Skipped {skipped} duplicate task(s) for '{task_list.title}'")
    return replace(task_list, tasks=list(task_list.tasks) + added), added


def update_tasks(task_list: TaskList, patches: Iterable[TaskPatch], now: Optional[datetime] = None) -> TaskList:
    """Apply each patch to all matching tasks. Unmatched patches are no-ops."""
    now = now or datetime.now(timezone.utc)
    tasks = list(task_list.tasks)
    for patch in patches:
        indexes = match_task_indexes(tasks, patch.title)
        if not indexes:
            logger.info(f"No task matching '{patch.title}' in '{task_list.title}', update ignored")
            continue
        if len(indexes) > 1:
            logger.info(f"Update of '{patch.title}' applies to {len(indexes)} tasks in '{task_list.title}'")
        for index in indexes:
            tasks[index] = apply_patch(tasks[index], patch.changes, now)
    return replace(task_list, tasks=tasks)


def delete_tasks(task_list: TaskList, titles: Iterable[str]) -> TaskList:
    """Remove every task whose normalized title is in `titles`."""
    keys = {normalize_title(t) for t in titles} - {""}
    remaining = [task for task in task_list.tasks if normalize_title(task.title) not in keys]
    removed = len(task_list.tasks) - len(remaining)
    if keys and not removed:
        logger.info(f"No tasks to delete in '{task_list.title}'")
    return replace(task_list, tasks=remaining)


def match_task_indexes(tasks: List[Task], title: str) -> List[int]:
    """
    Indexes of tasks addressed by `title`: exact normalized matches, or
    when there are none, every task whose title contains it.
    """
    key = normalize_title(title)
    if not key:
        return []
    exact = [i for i, task in enumerate(tasks) if normalize_title(task.title) == key]
    if exact:
        return exact
    return [i for i, task in enumerate(tasks) if key in normalize_title(task.title)]


def apply_patch(task: Task, changes: Dict[str, Any], now: datetime) -> Task:
    """Shallow-merge changes onto a task, keeping its id."""
    fields = {k: v for k, v in changes.items() if k not in ("id", "completed")}
    patched = replace(task, **fields)
    if "completed" in changes:
        if changes["completed"]:
            patched = replace(patched, completed=True, completed_at=task.completed_at or now)
        else:
            patched = replace(patched, completed=False, completed_at=None)
    return patched


def merge_duplicate_lists(lists: List[TaskList], now: Optional[datetime] = None) -> ReconcileResult:
    """
    Cleanup pass: fold every group of same-titled lists into its oldest
    member and delete the others.
    """
    now = now or datetime.now(timezone.utc)
    groups: Dict[str, List[TaskList]] = {}
    for task_list in lists:
        groups.setdefault(normalize_title(task_list.title), []).append(task_list)

    result = ReconcileResult()
    for group in groups.values():
        if len(group) < 2:
            continue
        group = sorted(group, key=lambda l: l.created_at)
        keeper = group[0]
        for duplicate in group[1:]:
            keeper, _ = add_tasks(keeper, duplicate.tasks)
            keeper = replace(keeper, category=keeper.category or duplicate.category)
            result.deleted.append(duplicate)
        result.modified.append(replace(keeper, updated_at=now))
        logger.info(f"Merged {len(group) - 1} duplicate list(s) into '{keeper.title}'")
    return result


def _dedupe_against(existing: Iterable[Task], incoming: Iterable[Task]) -> List[Task]:
    """
    Incoming tasks whose title is not held by an active task in `existing`.
    Within `incoming` only the first task of a title is kept, completed or not.
    """
    seen = {normalize_title(task.title) for task in existing if task.is_active}
    kept: List[Task] = []
    for task in incoming:
        key = normalize_title(task.title)
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(task)
    return kept
