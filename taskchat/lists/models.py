"""
TASKCHAT - Task List Models

Internal Task/TaskList entities and their persistence representation.
Dates cross the storage boundary as ISO-8601 strings.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, List, Optional
import uuid

from taskchat.constants import PRIORITY_MAP, STATUS_MAP
from taskchat.lists.enums import TaskPriority, TaskStatus


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _datetime_to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _datetime_from_iso(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _date_from_iso(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Stored values may carry a time part written by other clients
    return date.fromisoformat(str(value)[:10])


def _priority_from_store(value: Any) -> TaskPriority:
    # older records may hold any word the generator produced
    mapped = PRIORITY_MAP.get(str(value).strip().lower()) if value else None
    return TaskPriority(mapped) if mapped else TaskPriority.MEDIUM


def _status_from_store(value: Any) -> Optional[TaskStatus]:
    mapped = STATUS_MAP.get(str(value).strip().lower()) if value else None
    return TaskStatus(mapped) if mapped else None


@dataclass
class Task:
    """A single task inside a list. The id is engine-assigned."""

    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    categories: List[str] = field(default_factory=list)
    status: Optional[TaskStatus] = None

    @classmethod
    def create(
        cls,
        title: str,
        priority: TaskPriority = TaskPriority.MEDIUM,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        categories: Optional[List[str]] = None,
        status: Optional[TaskStatus] = None,
    ) -> "Task":
        """Create a new, not yet completed task with a generated ID."""
        return cls(
            id=new_id(),
            title=title,
            description=description,
            completed=False,
            completed_at=None,
            priority=priority,
            due_date=due_date,
            categories=list(categories or []),
            status=status,
        )

    @property
    def is_active(self) -> bool:
        return not self.completed

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "completed_at": _datetime_to_iso(self.completed_at),
            "priority": self.priority.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "categories": list(self.categories),
            "status": self.status.value if self.status else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description"),
            completed=bool(data.get("completed", False)),
            completed_at=_datetime_from_iso(data.get("completed_at")),
            priority=_priority_from_store(data.get("priority")),
            due_date=_date_from_iso(data.get("due_date")),
            categories=list(data.get("categories") or []),
            status=_status_from_store(data.get("status")),
        )


@dataclass
class TaskList:
    """An ordered, user-owned collection of tasks."""

    id: str
    owner_id: str
    title: str
    tasks: List[Task] = field(default_factory=list)
    category: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    order: Optional[int] = None

    @classmethod
    def create(
        cls,
        owner_id: str,
        title: str,
        tasks: Optional[List[Task]] = None,
        category: Optional[str] = None,
        order: Optional[int] = None,
    ) -> "TaskList":
        """Create a new list with generated ID."""
        now = _utcnow()
        return cls(
            id=new_id(),
            owner_id=owner_id,
            title=title,
            tasks=list(tasks or []),
            category=category,
            created_at=now,
            updated_at=now,
            order=order,
        )

    def to_dict(self) -> dict:
        """Convert the list to its stored document form."""
        return {
            "_id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "tasks": [task.to_dict() for task in self.tasks],
            "category": self.category,
            "created_at": _datetime_to_iso(self.created_at),
            "updated_at": _datetime_to_iso(self.updated_at),
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskList":
        """Create a list from a stored document."""
        created_at = _datetime_from_iso(data.get("created_at")) or _utcnow()
        return cls(
            id=data.get("_id") or data["id"],
            owner_id=data["owner_id"],
            title=data["title"],
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
            category=data.get("category"),
            created_at=created_at,
            updated_at=_datetime_from_iso(data.get("updated_at")) or created_at,
            order=data.get("order"),
        )
