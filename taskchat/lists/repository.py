"""
TASKCHAT - Task List Repository

Persistence collaborator for task lists.
Includes MongoDB implementation for runtime and an in-memory one for tests.
Every call is scoped by owner_id.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from taskchat.constants import LIST_COLLECTION
from taskchat.lists.models import TaskList


class TaskListRepositoryInterface(ABC):
    """
    Abstract interface for task list storage.

    Mirrors the four document primitives the engine needs:
    create, partial update, delete and list-all.
    """

    @abstractmethod
    async def create(self, task_list: TaskList) -> TaskList:
        """Store a brand-new list and return the stored record."""
        pass

    @abstractmethod
    async def update(self, list_id: str, owner_id: str, updates: dict) -> Optional[TaskList]:
        """Apply a partial record. `updates` holds persistence-form values."""
        pass

    @abstractmethod
    async def delete(self, list_id: str, owner_id: str) -> bool:
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str, order_by: str = "created_at") -> List[TaskList]:
        pass


def _stamp(updates: dict) -> dict:
    stamped = dict(updates)
    stamped["updated_at"] = datetime.now(timezone.utc).isoformat()
    return stamped


class TaskListRepository(TaskListRepositoryInterface):
    """MongoDB implementation of the task list repository."""

    COLLECTION_NAME = LIST_COLLECTION

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    async def create(self, task_list: TaskList) -> TaskList:
        await self.collection.insert_one(task_list.to_dict())
        return task_list

    async def update(self, list_id: str, owner_id: str, updates: dict) -> Optional[TaskList]:
        result = await self.collection.find_one_and_update(
            {"_id": list_id, "owner_id": owner_id},
            {"$set": _stamp(updates)},
            return_document=True,
        )
        if result is None:
            return None
        return TaskList.from_dict(result)

    async def delete(self, list_id: str, owner_id: str) -> bool:
        result = await self.collection.delete_one({"_id": list_id, "owner_id": owner_id})
        return result.deleted_count > 0

    async def list_by_owner(self, owner_id: str, order_by: str = "created_at") -> List[TaskList]:
        cursor = self.collection.find({"owner_id": owner_id}).sort(order_by, 1)
        lists: List[TaskList] = []
        async for doc in cursor:
            lists.append(TaskList.from_dict(doc))
        return lists


class InMemoryTaskListRepository(TaskListRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.

    Stores documents in their persisted (dict) form so every read goes
    through the same conversion as the MongoDB implementation.
    """

    def __init__(self):
        self._docs: dict[str, dict] = {}

    async def create(self, task_list: TaskList) -> TaskList:
        doc = task_list.to_dict()
        self._docs[task_list.id] = doc
        return TaskList.from_dict(doc)

    async def update(self, list_id: str, owner_id: str, updates: dict) -> Optional[TaskList]:
        doc = self._docs.get(list_id)
        if doc is None or doc["owner_id"] != owner_id:
            return None
        doc.update(_stamp(updates))
        return TaskList.from_dict(doc)

    async def delete(self, list_id: str, owner_id: str) -> bool:
        doc = self._docs.get(list_id)
        if doc is None or doc["owner_id"] != owner_id:
            return False
        del self._docs[list_id]
        return True

    async def list_by_owner(self, owner_id: str, order_by: str = "created_at") -> List[TaskList]:
        docs = [d for d in self._docs.values() if d["owner_id"] == owner_id]
        docs.sort(key=lambda d: (d.get(order_by) is None, d.get(order_by) or ""))
        return [TaskList.from_dict(d) for d in docs]
