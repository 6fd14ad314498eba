"""
TASKCHAT - List Resolver

Decides which of the user's lists an operation targets, by
case-insensitive exact title match.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from taskchat.engine.normalize import normalize_title
from taskchat.engine.operations import ListOperation
from taskchat.lists.enums import OperationKind
from taskchat.lists.models import TaskList

logger = logging.getLogger(__name__)


class TargetKind(str, Enum):
    EXISTING = "existing"
    NEW = "new"
    MISSING = "missing"


@dataclass
class Resolution:
    kind: TargetKind
    lists: List[TaskList] = field(default_factory=list)

    @property
    def target(self) -> Optional[TaskList]:
        return self.lists[0] if self.lists else None


def find_lists_by_title(lists: List[TaskList], title: str) -> List[TaskList]:
    """All lists whose title equals `title` ignoring case and surrounding whitespace."""
    key = normalize_title(title)
    if not key:
        return []
    return [task_list for task_list in lists if normalize_title(task_list.title) == key]


def resolve_target(
    operation: ListOperation,
    lists: List[TaskList],
    enforce_unique_titles: bool = True,
) -> Resolution:
    """
    Resolve an operation against the current collection.

    - deleteList: every list with a matching title (duplicates included)
    - add with isAddToExisting and a match: that existing list
    - add without a match: a new list
    - add without isAddToExisting but with a match: the existing list when
      unique titles are enforced, otherwise a new list
    - update/delete: the matching list, or MISSING (they never create lists)
    """
    matches = find_lists_by_title(lists, operation.title)
    if not matches and operation.list_id:
        matches = [task_list for task_list in lists if task_list.id == operation.list_id]

    if operation.kind == OperationKind.DELETE_LIST:
        return Resolution(TargetKind.EXISTING if matches else TargetKind.MISSING, matches)

    if operation.kind in (OperationKind.UPDATE, OperationKind.DELETE):
        if not matches:
            logger.info(f"No list titled '{operation.title}' for {operation.kind.value}, skipping")
            return Resolution(TargetKind.MISSING)
        return Resolution(TargetKind.EXISTING, matches[:1])

    if not matches:
        return Resolution(TargetKind.NEW)

    if operation.is_add_to_existing:
        return Resolution(TargetKind.EXISTING, matches[:1])

    if enforce_unique_titles:
        logger.info(f"List '{operation.title}' already exists, merging instead of creating a duplicate")
        return Resolution(TargetKind.EXISTING, matches[:1])

    return Resolution(TargetKind.NEW)
