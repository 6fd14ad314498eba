"""
TASKCHAT - Test Configuration

Shared fixtures for CI-safe testing without MongoDB or a real generator.
"""

import asyncio
from datetime import datetime, timezone, timedelta
from typing import List, Optional, Union
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from taskchat.chat.composer import ComposedPrompt
from taskchat.chat.generator import TaskGeneratorInterface
from taskchat.chat.router import set_chat_service
from taskchat.chat.service import ChatService
from taskchat.chat.session import SessionStore, get_session_store
from taskchat.database import get_database
from taskchat.lists.models import Task, TaskList
from taskchat.lists.repository import InMemoryTaskListRepository
from taskchat.lists.router import get_task_list_repository
from taskchat.main import app


class ScriptedGenerator(TaskGeneratorInterface):
    """Returns queued replies in order; an Exception in the queue is raised instead."""

    def __init__(self):
        self.replies: List[Union[str, Exception]] = []
        self.prompts: List[ComposedPrompt] = []

    def queue(self, *replies: Union[str, Exception]) -> None:
        self.replies.extend(replies)

    async def generate(self, prompt: ComposedPrompt) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            return "I'm not sure what you mean."
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FailingRepository(InMemoryTaskListRepository):
    """Store whose writes fail, for persistence-failure paths."""

    async def create(self, task_list: TaskList) -> TaskList:
        raise RuntimeError("store unavailable")

    async def update(self, list_id: str, owner_id: str, updates: dict) -> Optional[TaskList]:
        raise RuntimeError("store unavailable")


class FrozenClock:
    """A clock that returns a fixed time for deterministic testing."""

    def __init__(self, frozen_time: datetime):
        self._frozen_time = frozen_time

    def __call__(self) -> datetime:
        return self._frozen_time

    def advance(self, delta: timedelta) -> None:
        self._frozen_time += delta


def make_list(owner_id: str, title: str, *task_titles: str, completed: tuple = ()) -> TaskList:
    """Build a list whose tasks are named by `task_titles`; titles in `completed` are done."""
    tasks = []
    for task_title in task_titles:
        task = Task.create(title=task_title)
        if task_title in completed:
            task.completed = True
            task.completed_at = datetime(2025, 1, 14, 9, 0, tzinfo=timezone.utc)
        tasks.append(task)
    return TaskList.create(owner_id=owner_id, title=title, tasks=tasks)


def fenced(payload: str, prose: str = "Done!") -> str:
    return f"{prose}\n\n```json\n{payload}\n```"


@pytest.fixture
def user_id() -> str:
    return "user-1"


@pytest.fixture
def frozen_now() -> datetime:
    """A fixed 'now' time for testing."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(frozen_now) -> FrozenClock:
    return FrozenClock(frozen_now)


@pytest.fixture
def repository() -> InMemoryTaskListRepository:
    """Provide a fresh in-memory list repository for each test."""
    return InMemoryTaskListRepository()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def chat_service(generator, sessions, frozen_clock) -> ChatService:
    return ChatService(generator, sessions, clock=frozen_clock)


@pytest.fixture
def client(repository, sessions, chat_service):
    """Create test client wired to the in-memory repository and scripted generator."""

    async def override_get_task_list_repository():
        return repository

    async def override_get_database():
        return MagicMock()

    app.dependency_overrides[get_task_list_repository] = override_get_task_list_repository
    app.dependency_overrides[get_session_store] = lambda: sessions
    app.dependency_overrides[get_database] = override_get_database
    set_chat_service(chat_service)

    yield TestClient(app)

    app.dependency_overrides.clear()
    set_chat_service(None)


def seed(repository: InMemoryTaskListRepository, *lists: TaskList) -> None:
    """Synchronously store lists (for tests driven through TestClient)."""

    async def _seed():
        for task_list in lists:
            await repository.create(task_list)

    asyncio.run(_seed())
