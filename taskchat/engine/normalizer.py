"""
TASKCHAT - Operation Normalizer

Fills defaults, parses dates and coerces tag fields on the task payloads of
a ListOperation. Unusable task items (empty title) are dropped; the rest of
the operation continues.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from taskchat.constants import PRIORITY_MAP, STATUS_MAP
from taskchat.engine.normalize import normalize_title
from taskchat.engine.operations import ListOperation, TaskPayload
from taskchat.lists.enums import OperationKind, TaskPriority, TaskStatus
from taskchat.lists.models import Task

logger = logging.getLogger(__name__)

NONE_DATE_WORDS = {"none", "null", "no", "n/a", "skip"}


@dataclass
class TaskPatch:
    """Fields an update operation replaces on every task matching `title`."""

    title: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedOperation:
    operation: ListOperation
    new_tasks: List[Task] = field(default_factory=list)
    patches: List[TaskPatch] = field(default_factory=list)
    titles_to_delete: List[str] = field(default_factory=list)

    @property
    def kind(self) -> OperationKind:
        return self.operation.kind

    @property
    def title(self) -> str:
        return self.operation.title


def normalize_operation(operation: ListOperation, now: Optional[datetime] = None) -> NormalizedOperation:
    """Normalize every task payload of one operation according to its kind."""
    now = now or datetime.now(timezone.utc)
    result = NormalizedOperation(operation=operation)

    if operation.kind == OperationKind.ADD:
        for payload in operation.tasks:
            task = normalize_new_task(payload, now)
            if task is not None:
                result.new_tasks.append(task)
    elif operation.kind == OperationKind.UPDATE:
        for payload in operation.tasks:
            patch = normalize_task_patch(payload, now)
            if patch is not None:
                result.patches.append(patch)
    elif operation.kind == OperationKind.DELETE:
        result.titles_to_delete = [t.strip() for t in operation.titles_to_delete if t and t.strip()]

    dropped = len(operation.tasks) - len(result.new_tasks) - len(result.patches)
    if operation.kind in (OperationKind.ADD, OperationKind.UPDATE) and dropped:
        logger.warning(f"Dropped {dropped} unusable task item(s) from '{operation.title}'")
    return result


def normalize_new_task(payload: TaskPayload, now: Optional[datetime] = None) -> Optional[Task]:
    """Build a fresh engine-owned Task from a payload, or None if it has no title."""
    title = (payload.title or "").strip()
    if not title:
        return None

    data = payload.data
    task = Task.create(
        title=title,
        priority=parse_priority(data.get("priority")) or TaskPriority.MEDIUM,
        description=_clean_text(data.get("description")),
        due_date=parse_due_date(_due_date_value(data), now),
        categories=normalize_categories(data) or [],
        status=parse_status(data.get("status")),
    )
    if parse_flag(data.get("completed")):
        task.completed = True
        task.completed_at = now or datetime.now(timezone.utc)
    return task


def normalize_task_patch(payload: TaskPayload, now: Optional[datetime] = None) -> Optional[TaskPatch]:
    """Collect only the fields the payload actually carries. Ids are never part of a patch."""
    title = (payload.title or "").strip()
    if not title:
        return None

    data = payload.data
    changes: Dict[str, Any] = {}

    new_title = _clean_text(data.get("newTitle"))
    if new_title:
        changes["title"] = new_title
    if "description" in data:
        changes["description"] = _clean_text(data.get("description"))
    if "priority" in data:
        priority = parse_priority(data.get("priority"))
        if priority is not None:
            changes["priority"] = priority
        else:
            logger.debug(f"Ignoring unrecognized priority {data.get('priority')!r} on update of '{title}'")
    if "dueDate" in data or "due_date" in data:
        changes["due_date"] = parse_due_date(_due_date_value(data), now)
    if "category" in data or "categories" in data:
        changes["categories"] = normalize_categories(data) or []
    if "status" in data:
        changes["status"] = parse_status(data.get("status"))
    if "completed" in data:
        changes["completed"] = parse_flag(data.get("completed"))

    return TaskPatch(title=title, changes=changes)


def parse_priority(value: Any) -> Optional[TaskPriority]:
    if not isinstance(value, str):
        return None
    mapped = PRIORITY_MAP.get(value.strip().lower())
    return TaskPriority(mapped) if mapped else None


def parse_status(value: Any) -> Optional[TaskStatus]:
    if not isinstance(value, str):
        return None
    mapped = STATUS_MAP.get(value.strip().lower())
    return TaskStatus(mapped) if mapped else None


def parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return value is True


def parse_due_date(value: Any, now: Optional[datetime] = None) -> Optional[date]:
    """
    Parse a due date into a date value.

    Accepts ISO dates/datetimes, YYYY/MM/DD, DD/MM/YYYY (any of - . /
    as separator) and DD/MM (current year). Anything else is None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text.lower() in NONE_DATE_WORDS:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    if not re.match(r"^[\d.\-/]+$", text):
        logger.debug(f"Unparseable due date {value!r}, dropping it")
        return None

    parts = re.split(r"[-./]", text)
    try:
        if len(parts) == 3:
            if len(parts[0]) == 4:
                year, month, day = int(parts[0]), int(parts[1]), int(parts[2])
            else:
                day, month, year = int(parts[0]), int(parts[1]), int(parts[2])
                if year < 100:
                    year += 2000
        elif len(parts) == 2:
            day, month = int(parts[0]), int(parts[1])
            year = (now or datetime.now(timezone.utc)).year
        else:
            return None
        return date(year, month, day)
    except ValueError:
        # e.g. 31.02 or empty parts
        logger.debug(f"Invalid calendar date {value!r}, dropping it")
        return None


def normalize_categories(data: Dict[str, Any]) -> Optional[List[str]]:
    """
    Fold the legacy singular `category` and the plural `categories` into
    one tag list. When both are present the one with more tags wins.
    Returns None when neither field carries a tag.
    """
    singular = _dedupe_tags([data.get("category")])
    plural_raw = data.get("categories")
    if isinstance(plural_raw, str):
        plural_raw = plural_raw.split(",")
    plural = _dedupe_tags(plural_raw if isinstance(plural_raw, list) else [])

    if not singular and not plural:
        return None
    return plural if len(plural) >= len(singular) else singular


def _dedupe_tags(values: List[Any]) -> List[str]:
    tags: List[str] = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            continue
        tag = value.strip()
        key = normalize_title(tag)
        if key and key not in seen:
            seen.add(key)
            tags.append(tag)
    return tags


def _due_date_value(data: Dict[str, Any]) -> Any:
    return data.get("dueDate", data.get("due_date"))


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None
