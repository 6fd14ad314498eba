"""
TASKCHAT - Task List Schemas

Pydantic models for list API responses and the chat surface.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskchat.lists.enums import TaskPriority, TaskStatus
from taskchat.lists.models import Task, TaskList


class TaskResponse(BaseModel):
    """Response model for a single task."""

    id: str = Field(description="Task ID (engine-assigned)")
    title: str = Field(description="Task title")
    description: Optional[str] = Field(default=None, description="Task description")
    completed: bool = Field(description="Completion flag")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp")
    priority: TaskPriority = Field(description="Task priority")
    due_date: Optional[date] = Field(default=None, description="Due date (date only)")
    categories: List[str] = Field(default_factory=list, description="Category tags")
    status: Optional[TaskStatus] = Field(default=None, description="Board placement")

    @classmethod
    def from_model(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            completed_at=task.completed_at,
            priority=task.priority,
            due_date=task.due_date,
            categories=list(task.categories),
            status=task.status,
        )


class TaskListResponse(BaseModel):
    """Response model for a single task list."""

    id: str = Field(description="List ID")
    title: str = Field(description="List title")
    tasks: List[TaskResponse] = Field(default_factory=list, description="Tasks in display order")
    category: Optional[str] = Field(default=None, description="List category")
    created_at: datetime = Field(description="Creation timestamp")
    order: Optional[int] = Field(default=None, description="Explicit ordering key")

    @classmethod
    def from_model(cls, task_list: TaskList) -> "TaskListResponse":
        return cls(
            id=task_list.id,
            title=task_list.title,
            tasks=[TaskResponse.from_model(t) for t in task_list.tasks],
            category=task_list.category,
            created_at=task_list.created_at,
            order=task_list.order,
        )


class TaskListCollectionResponse(BaseModel):
    """Response model for a user's full collection."""

    lists: List[TaskListResponse] = Field(description="All lists of the user")
    total: int = Field(description="Number of lists")


class CleanupResponse(BaseModel):
    """Result of the duplicate-list cleanup pass."""

    merged_into: List[str] = Field(description="IDs of lists that absorbed duplicates")
    deleted: List[str] = Field(description="IDs of duplicate lists removed")
    lists: List[TaskListResponse] = Field(description="Collection after cleanup")
