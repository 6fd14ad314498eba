"""
TASKCHAT - Chat Session

Explicit per-user conversation context threaded through every turn:
history, the list collection (held by the sync coordinator), the loading
flag that gates re-entrant turns, and list deletions awaiting confirmation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from taskchat.config import settings
from taskchat.engine.sync import SyncCoordinator
from taskchat.lists.models import TaskList
from taskchat.lists.repository import TaskListRepositoryInterface

logger = logging.getLogger(__name__)


class TurnInProgressError(Exception):
    """A turn was submitted while the previous one is still running."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"A message for user {user_id} is already being processed")


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    task_lists: List[TaskList] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_history(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatSession:
    user_id: str
    coordinator: SyncCoordinator
    history: List[ChatMessage] = field(default_factory=list)
    loading: bool = False
    # normalized titles of lists the user was asked to confirm deleting
    pending_list_deletions: Set[str] = field(default_factory=set)

    def add_message(self, role: str, content: str, **kwargs) -> ChatMessage:
        message = ChatMessage(role=role, content=content, **kwargs)
        self.history.append(message)
        # never below what the prompt reads back
        limit = max(settings.SESSION_HISTORY_MAX, settings.HISTORY_LIMIT, 1)
        if len(self.history) > limit:
            del self.history[:-limit]
        return message

    def recent_history(self, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        return self.history[-limit:]

    def last_assistant_message(self) -> Optional[ChatMessage]:
        for message in reversed(self.history):
            if message.role == "assistant":
                return message
        return None

    def reset(self) -> None:
        """Forget the conversation. The list collection is kept."""
        self.history.clear()
        self.pending_list_deletions.clear()
        self.loading = False


class SessionStore:
    """In-process registry of chat sessions keyed by user id."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}

    async def get(self, user_id: str, repository: TaskListRepositoryInterface) -> ChatSession:
        """
        Return the user's session, loading their lists from the store on first use.

        The session is registered before the load is awaited and stays
        `loading` until it finishes, so a concurrent first request sees the
        busy session instead of creating a second one.
        """
        session = self._sessions.get(user_id)
        if session is not None:
            return session

        coordinator = SyncCoordinator(user_id, repository)
        session = ChatSession(user_id=user_id, coordinator=coordinator, loading=True)
        self._sessions[user_id] = session
        try:
            await coordinator.reload()
        except Exception:
            self._sessions.pop(user_id, None)
            raise
        session.loading = False
        logger.info(f"Started chat session for user {user_id}")
        return session

    def peek(self, user_id: str) -> Optional[ChatSession]:
        return self._sessions.get(user_id)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    """Dependency to get the session store."""
    return session_store
