"""
TASKCHAT - Chat Service

Runs one chat turn end to end:
1. Compose the prompt from the session (history + current lists)
2. Call the text generator
3. Extract list operations from the reply
4. Normalize, resolve and reconcile each operation in order, applying
   each result to the in-memory collection before the next one
5. Wait for the store writes and report failures in the conversation

Every failure is scoped to the turn; nothing here is fatal.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from taskchat.chat.composer import compose_prompt
from taskchat.chat.confirm import asks_to_delete_list, parse_confirmation
from taskchat.chat.generator import TaskGeneratorInterface
from taskchat.chat.schemas import ChatResponse
from taskchat.chat.session import ChatMessage, ChatSession, SessionStore, TurnInProgressError
from taskchat.config import settings
from taskchat.engine.extractor import extract_response
from taskchat.engine.normalize import normalize_title
from taskchat.engine.normalizer import normalize_operation
from taskchat.engine.operations import ListOperation
from taskchat.engine.reconcile import ReconcileResult, reconcile
from taskchat.engine.resolver import Resolution, TargetKind, resolve_target
from taskchat.lists.enums import OperationKind
from taskchat.lists.models import TaskList
from taskchat.lists.repository import TaskListRepositoryInterface
from taskchat.lists.schemas import TaskListResponse

logger = logging.getLogger(__name__)

# outcomes of the deleteList confirmation step
DELETE = "delete"
ASK = "ask"
CANCELLED = "cancelled"


class ChatService:
    """Service for chat turn orchestration."""

    def __init__(
        self,
        generator: TaskGeneratorInterface,
        sessions: SessionStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.generator = generator
        self.sessions = sessions
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self._clock()

    async def process_message(
        self,
        user_id: str,
        message: str,
        repository: TaskListRepositoryInterface,
    ) -> ChatResponse:
        """
        Process one user message.

        Raises:
            TurnInProgressError: if the session is still running a turn
        """
        session = await self.sessions.get(user_id, repository)
        if session.loading:
            raise TurnInProgressError(user_id)

        session.loading = True
        try:
            return await self._run_turn(session, message)
        finally:
            session.loading = False

    async def _run_turn(self, session: ChatSession, message: str) -> ChatResponse:
        now = self._now()
        previous_assistant = session.last_assistant_message()
        prompt = compose_prompt(
            message,
            session.recent_history(settings.HISTORY_LIMIT),
            session.coordinator.lists,
            today=now.date(),
        )
        session.add_message("user", message)

        try:
            text = await self.generator.generate(prompt)
        except Exception as e:
            logger.error(f"Generator call failed for user {session.user_id}: {e}", exc_info=True)
            content = f"Sorry, I encountered an error: {e}"
            session.add_message("assistant", content)
            return ChatResponse(reply=content, intent="error", error=str(e))

        extraction = extract_response(text)
        logger.info(
            f"Turn for user {session.user_id}: {len(extraction.operations)} operation(s), "
            f"payload={'yes' if extraction.has_payload else 'no'}"
        )

        combined = ReconcileResult()
        awaiting_confirmation: List[Tuple[ListOperation, Resolution]] = []
        kept_lists: List[ListOperation] = []
        for operation in extraction.operations:
            normalized = normalize_operation(operation, now)
            resolution = resolve_target(
                operation,
                session.coordinator.lists,
                enforce_unique_titles=settings.ENFORCE_UNIQUE_LIST_TITLES,
            )

            if operation.kind == OperationKind.DELETE_LIST and resolution.kind == TargetKind.EXISTING:
                decision = self._list_deletion_decision(session, operation, message, previous_assistant)
                if decision == CANCELLED:
                    kept_lists.append(operation)
                    continue
                if decision == ASK:
                    awaiting_confirmation.append((operation, resolution))
                    continue

            result = reconcile(normalized, resolution, session.user_id, now)
            session.coordinator.apply(result)
            combined.extend(result)

        report = await session.coordinator.flush()

        if awaiting_confirmation or kept_lists:
            # the generator's prose may claim a deletion that did not happen
            reply = self._skipped_deletion_reply(awaiting_confirmation, kept_lists)
        else:
            reply = extraction.reply or extraction.confirmation_message or ""

        task_lists = self._current_versions(session, combined)
        session.add_message(
            "assistant",
            reply,
            task_lists=task_lists,
            suggestions=extraction.suggestions,
        )

        response = ChatResponse(
            reply=reply,
            intent=self._intent(combined, awaiting_confirmation),
            task_lists=[TaskListResponse.from_model(t) for t in task_lists],
            deleted_list_ids=[t.id for t in combined.deleted],
            suggestions=extraction.suggestions,
        )

        if not report.ok:
            error = "; ".join(str(e) for e in report.errors)
            content = f"Sorry, I couldn't save all of your changes: {error}"
            session.add_message("assistant", content)
            response.intent = "error"
            response.error = content
        return response

    def _list_deletion_decision(
        self,
        session: ChatSession,
        operation: ListOperation,
        message: str,
        previous_assistant: Optional[ChatMessage],
    ) -> str:
        """
        Whole-list deletion needs a prior confirmation step: either an
        earlier turn recorded it as pending, or the last assistant message
        already asked about deleting this list. Only an answer to that
        question can cancel it; words of the list title are not read as
        part of the answer.
        """
        if not settings.REQUIRE_DELETE_LIST_CONFIRMATION:
            return DELETE

        key = normalize_title(operation.title)
        asked = key in session.pending_list_deletions or (
            previous_assistant is not None and asks_to_delete_list(previous_assistant.content, operation.title)
        )
        if not asked:
            session.pending_list_deletions.add(key)
            logger.info(f"Deletion of list '{operation.title}' needs confirmation first")
            return ASK

        session.pending_list_deletions.discard(key)
        if parse_confirmation(message, ignore=operation.title).cancelled:
            logger.info(f"User cancelled deletion of list '{operation.title}'")
            return CANCELLED
        return DELETE

    @staticmethod
    def _skipped_deletion_reply(
        pending: List[Tuple[ListOperation, Resolution]],
        kept: List[ListOperation],
    ) -> str:
        lines = [f"Okay, I'll keep the '{operation.title}' list." for operation in kept]
        for operation, resolution in pending:
            task_count = sum(len(t.tasks) for t in resolution.lists)
            lines.append(
                f"Just to confirm: should I delete the '{operation.title}' list "
                f"and its {task_count} task(s)? Reply yes to delete or cancel to keep it."
            )
        return "\n".join(lines)

    @staticmethod
    def _current_versions(session: ChatSession, result: ReconcileResult) -> List[TaskList]:
        """Latest in-memory version of every list this turn created or modified."""
        latest: Dict[str, TaskList] = {}
        for task_list in result.affected:
            current = session.coordinator.get(task_list.id)
            if current is not None:
                latest[task_list.id] = current
        return list(latest.values())

    @staticmethod
    def _intent(result: ReconcileResult, awaiting_confirmation: list) -> str:
        if awaiting_confirmation:
            return "confirm_delete"
        if result.changed:
            return "lists_updated"
        return "answer"
