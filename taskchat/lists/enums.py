"""
TASKCHAT - Task List Enums

Canonical values for task fields and list operation kinds.
"""

from enum import Enum


class TaskPriority(str, Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    """Board column a task is placed in."""
    TODAY = "today"
    UPCOMING = "upcoming"
    DONE = "done"


class OperationKind(str, Enum):
    """Kinds of list operations the generator may emit."""
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    DELETE_LIST = "deleteList"
